"""Storage facade exposed to the UI boundary."""
from __future__ import annotations
from pathlib import Path
from typing import Optional

from logging_bus import emit, set_file_logger, set_verbose
from .app_state import AppStateStore
from .blobs import BlobStore
from .config import StorageConfig
from .legacy import migrate_legacy_state
from .models import ApplicationState, DocumentBlob, ProjectMetadata, StoredDocument, Target
from .projects import ProjectStore
from .scheduler import ErrorCallback, WriteScheduler


class ProjectStorage:
    def __init__(self, base_dir: Path, debounce_seconds: float = 0.5,
                 on_write_error: Optional[ErrorCallback] = None, scheduler: Optional[WriteScheduler] = None):
        self.base_dir = Path(base_dir)
        self.scheduler = scheduler or WriteScheduler(delay=debounce_seconds, on_error=on_write_error)
        self.blobs = BlobStore(self.base_dir)
        self.projects = ProjectStore(self.base_dir, self.scheduler)
        self.app_state = AppStateStore(self.base_dir, self.scheduler)

    @classmethod
    def from_config(cls, config: StorageConfig, on_write_error: Optional[ErrorCallback] = None) -> "ProjectStorage":
        set_verbose(config.verbose)
        set_file_logger(config.log_file)
        return cls(config.base_dir, debounce_seconds=config.debounce_seconds, on_write_error=on_write_error)

    # app state
    async def load_app_state(self) -> Optional[ApplicationState]:
        return await self.app_state.load()

    def save_app_state(self, state: ApplicationState) -> None:
        self.app_state.save(state)

    # projects
    async def load_project(self, project_id: str) -> Optional[ProjectMetadata]:
        return await self.projects.load(project_id)

    def save_project(self, project: ProjectMetadata) -> None:
        self.projects.save(project)

    async def delete_project(self, project_id: str) -> None:
        await self.projects.delete(project_id)

    # documents
    async def copy_document(self, target: Target, document_id: str, original_file_name: str,
                            data: bytes) -> StoredDocument:
        return await self.blobs.store(target, document_id, original_file_name, data)

    async def read_document(self, target: Target, stored_file_name: str) -> DocumentBlob:
        return await self.blobs.read(target, stored_file_name)

    async def delete_document(self, target: Target, stored_file_name: str) -> None:
        await self.blobs.delete(target, stored_file_name)

    async def delete_thread_documents(self, thread_id: str) -> None:
        await self.blobs.delete_target(Target.thread(thread_id))

    # legacy
    async def migrate_legacy_state(self, legacy_json: str) -> ApplicationState:
        return await migrate_legacy_state(legacy_json, self.projects, self.app_state)

    # lifecycle
    async def flush(self) -> None:
        """Write everything still pending. Must be awaited before the process exits."""
        pending = sorted(self.scheduler.pending_keys())
        emit("INFO", "SYSTEM", "Flushing pending writes", keys=pending)
        await self.scheduler.flush_all()


__all__ = ["ProjectStorage"]
