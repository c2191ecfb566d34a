"""One-time import of the pre-project-storage format.

The legacy format kept everything in a single blob: projects holding
"sessions" with flat message lists, no documents and no global threads.
"""
from __future__ import annotations
import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

from pydantic import Field, ValidationError

from logging_bus import emit
from .app_state import AppStateStore
from .errors import LegacyMigrationError
from .models import (
    AppSettings,
    ApplicationState,
    ChatMessageData,
    ProjectMetadata,
    Record,
    ThreadMetadata,
)
from .projects import ProjectStore
from .upgrades import rename_new_session_shortcut


class LegacySession(Record):
    id: str
    title: str
    messages: List[ChatMessageData] = Field(default_factory=list)
    last_updated: int


class LegacyProject(Record):
    id: str
    name: str
    sessions: List[LegacySession] = Field(default_factory=list)
    created_at: int


class LegacyState(Record):
    projects: List[LegacyProject] = Field(default_factory=list)
    active_project_id: Optional[str] = None
    active_session_id: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


def parse_legacy_state(legacy_json: str) -> LegacyState:
    try:
        raw = json.loads(legacy_json)
    except json.JSONDecodeError as e:
        raise LegacyMigrationError(f"Invalid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise LegacyMigrationError("Expected a JSON object at the top level.")
    try:
        return LegacyState.model_validate(raw)
    except ValidationError as e:
        raise LegacyMigrationError(f"Unexpected shape: {e.error_count()} problem(s), first at "
                                   f"{'.'.join(str(p) for p in e.errors()[0]['loc'])}") from e


def _migrate_settings(settings: Optional[Dict[str, Any]]) -> AppSettings:
    if settings is None:
        return AppSettings()
    upgraded = rename_new_session_shortcut({"settings": settings})["settings"]
    try:
        return AppSettings.model_validate(upgraded)
    except ValidationError as e:
        raise LegacyMigrationError(f"Invalid settings: {e.error_count()} problem(s)") from e


def _migrate_project(project: LegacyProject) -> ProjectMetadata:
    threads = [
        ThreadMetadata(
            id=s.id,
            title=s.title,
            messages=list(s.messages),
            documents=[],
            active_document_id=None,
            last_updated=s.last_updated,
        )
        for s in project.sessions
    ]
    updated_at = max([project.created_at] + [s.last_updated for s in project.sessions])
    return ProjectMetadata(
        id=project.id,
        name=project.name,
        documents=[],
        threads=threads,
        created_at=project.created_at,
        updated_at=updated_at,
    )


def build_migration(legacy: LegacyState) -> Tuple[ApplicationState, List[ProjectMetadata]]:
    """Pure conversion; same input, same output."""
    projects = [_migrate_project(p) for p in legacy.projects]
    first_project = legacy.projects[0] if legacy.projects else None

    active_project_id = legacy.active_project_id
    if active_project_id is None and first_project is not None:
        active_project_id = first_project.id

    active_thread_id = legacy.active_session_id
    if active_thread_id is None:
        first_session = first_project.sessions[0] if first_project and first_project.sessions else None
        active_thread_id = first_session.id if first_session else ""

    state = ApplicationState(
        project_index=[p.summary() for p in projects],
        threads=[],
        active_project_id=active_project_id,
        active_thread_id=active_thread_id,
        settings=_migrate_settings(legacy.settings),
    )
    return state, projects


async def migrate_legacy_state(legacy_json: str, projects: ProjectStore,
                               app_state: AppStateStore) -> ApplicationState:
    legacy = parse_legacy_state(legacy_json)
    state, migrated = build_migration(legacy)
    for project in migrated:
        await asyncio.to_thread(projects.documents_dir(project.id).mkdir, parents=True, exist_ok=True)
        await projects.write_now(project)
        emit("INFO", "MIGRATE", "Migrated project", project=project.id, threads=len(project.threads))
    await app_state.write_now(state)
    emit("INFO", "MIGRATE", "Legacy state migrated", projects=len(migrated))
    return state


__all__ = [
    "LegacyState",
    "LegacyProject",
    "LegacySession",
    "parse_legacy_state",
    "build_migration",
    "migrate_legacy_state",
]
