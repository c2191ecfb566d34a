import json

import pytest

from pilot_store.app_state import AppStateStore
from pilot_store.models import (
    AppSettings,
    ApplicationState,
    ChatMessageData,
    KeyboardShortcuts,
    ProjectSummary,
    StoredDocument,
    ThreadMetadata,
)
from pilot_store.scheduler import WriteScheduler


def sample_state():
    thread = ThreadMetadata(
        id="thread-1",
        title="Budget",
        messages=[ChatMessageData(id="m1", role="user", content="Budget", created_at=10, meta="gpt-5-mini")],
        documents=[StoredDocument(id="d1", original_file_name="b.pdf", stored_file_name="d1-b.pdf",
                                  size_bytes=3, added_at=11)],
        active_document_id="d1",
        last_updated=11,
    )
    return ApplicationState(
        project_index=[ProjectSummary(id="p2", name="B", updated_at=2), ProjectSummary(id="p1", name="A", updated_at=1)],
        threads=[thread],
        active_project_id=None,
        active_thread_id="thread-1",
        settings=AppSettings(model="gpt-5", reasoning_effort="xhigh",
                             shortcuts=KeyboardShortcuts(send_message="Ctrl+Enter", new_thread="Ctrl+N")),
    )


@pytest.mark.asyncio
async def test_save_then_load_round_trips(tmp_path):
    store = AppStateStore(tmp_path, WriteScheduler(delay=0.02))
    state = sample_state()
    store.save(state)
    await store.scheduler.flush_all()
    assert await store.load() == state


@pytest.mark.asyncio
async def test_file_uses_camel_case_and_is_pretty_printed(tmp_path):
    store = AppStateStore(tmp_path, WriteScheduler(delay=10))
    store.save(sample_state())
    await store.scheduler.flush_all()
    text = (tmp_path / "app-state.json").read_text(encoding="utf-8")
    assert "\n  " in text
    raw = json.loads(text)
    assert set(raw) == {"projectIndex", "threads", "activeProjectId", "activeThreadId", "settings"}
    assert raw["settings"]["reasoningEffort"] == "xhigh"
    assert raw["settings"]["shortcuts"] == {"sendMessage": "Ctrl+Enter", "newThread": "Ctrl+N"}


@pytest.mark.asyncio
async def test_old_field_names_are_renamed_on_load(tmp_path):
    (tmp_path / "app-state.json").write_text(json.dumps({
        "projectIndex": [{"id": "p1", "name": "A", "updatedAt": 1}],
        "globalThreads": [{"id": "thread-9", "title": "x", "messages": [], "documents": [],
                           "activeDocumentId": None, "lastUpdated": 3}],
        "activeProjectId": None,
        "activeSessionId": "thread-9",
        "settings": {"model": "m", "reasoningEffort": "low",
                     "shortcuts": {"sendMessage": "Meta+Enter", "newSession": "Meta+Shift+S"}},
    }), encoding="utf-8")
    state = await AppStateStore(tmp_path, WriteScheduler()).load()
    assert [t.id for t in state.threads] == ["thread-9"]
    assert state.active_thread_id == "thread-9"
    assert state.settings.shortcuts.new_thread == "Meta+Shift+S"


@pytest.mark.asyncio
async def test_missing_or_invalid_is_none(tmp_path):
    store = AppStateStore(tmp_path, WriteScheduler())
    assert await store.load() is None
    (tmp_path / "app-state.json").write_text("not json", encoding="utf-8")
    assert await store.load() is None
    (tmp_path / "app-state.json").write_text('{"settings": {"reasoningEffort": "extreme"}}', encoding="utf-8")
    assert await store.load() is None
