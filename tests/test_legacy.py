import json

import pytest

from pilot_store.errors import LegacyMigrationError
from pilot_store.legacy import build_migration, parse_legacy_state
from pilot_store.storage import ProjectStorage

SOCCER = {
    "projects": [
        {
            "id": "p1",
            "name": "Soccer",
            "sessions": [
                {
                    "id": "s1",
                    "title": "Goals",
                    "messages": [{"id": "m1", "role": "user", "content": "hi", "createdAt": 1000}],
                    "lastUpdated": 1000,
                }
            ],
            "createdAt": 900,
        }
    ],
    "activeProjectId": "p1",
    "activeSessionId": "s1",
}


@pytest.mark.asyncio
async def test_migrates_soccer_project(tmp_path):
    storage = ProjectStorage(tmp_path)
    state = await storage.migrate_legacy_state(json.dumps(SOCCER))

    assert [p.id for p in state.project_index] == ["p1"]
    assert state.project_index[0].name == "Soccer"
    assert state.active_project_id == "p1"
    assert state.active_thread_id == "s1"
    assert state.threads == []

    project = await ProjectStorage(tmp_path).load_project("p1")
    assert [t.id for t in project.threads] == ["s1"]
    thread = project.threads[0]
    assert thread.title == "Goals"
    assert thread.documents == []
    assert thread.active_document_id is None
    assert [m.model_dump() for m in thread.messages] == [
        {"id": "m1", "role": "user", "content": "hi", "created_at": 1000, "meta": None}
    ]
    assert project.documents == []
    assert project.updated_at == 1000
    assert (tmp_path / "projects" / "p1" / "documents").is_dir()
    assert await ProjectStorage(tmp_path).load_app_state() == state


def test_migration_is_deterministic():
    legacy = parse_legacy_state(json.dumps(SOCCER))
    assert build_migration(legacy) == build_migration(legacy)


def test_active_ids_fall_back_to_first_project_and_session():
    data = dict(SOCCER, activeProjectId=None)
    del data["activeSessionId"]
    state, _ = build_migration(parse_legacy_state(json.dumps(data)))
    assert state.active_project_id == "p1"
    assert state.active_thread_id == "s1"


def test_empty_legacy_leaves_selection_empty():
    state, projects = build_migration(parse_legacy_state("{}"))
    assert projects == []
    assert state.active_project_id is None
    assert state.active_thread_id == ""


def test_legacy_settings_are_carried_over():
    data = dict(SOCCER, settings={"model": "gpt-4o", "reasoningEffort": "low",
                                  "shortcuts": {"sendMessage": "Enter", "newSession": "Meta+N"}})
    state, _ = build_migration(parse_legacy_state(json.dumps(data)))
    assert state.settings.model == "gpt-4o"
    assert state.settings.shortcuts.new_thread == "Meta+N"


@pytest.mark.parametrize("blob", ["not json", "[1, 2]", '{"projects": [{"id": "p1"}]}'])
@pytest.mark.asyncio
async def test_malformed_legacy_fails_without_writing(tmp_path, blob):
    storage = ProjectStorage(tmp_path)
    with pytest.raises(LegacyMigrationError):
        await storage.migrate_legacy_state(blob)
    await storage.flush()
    assert list(tmp_path.iterdir()) == []
