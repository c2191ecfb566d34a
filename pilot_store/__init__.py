"""Local persistence for Document Pilot projects, threads and documents."""

from pilot_store.config import StorageConfig, load_config
from pilot_store.errors import (
    DocumentNotFoundError,
    FlushError,
    LegacyMigrationError,
    StorageError,
)
from pilot_store.models import (
    AppSettings,
    ApplicationState,
    ChatMessageData,
    ProjectMetadata,
    StoredDocument,
    Target,
    ThreadMetadata,
)
from pilot_store.scheduler import WriteScheduler
from pilot_store.storage import ProjectStorage
from pilot_store.workspace import Workspace

__all__ = [
    "StorageConfig",
    "load_config",
    "StorageError",
    "DocumentNotFoundError",
    "FlushError",
    "LegacyMigrationError",
    "AppSettings",
    "ApplicationState",
    "ChatMessageData",
    "ProjectMetadata",
    "StoredDocument",
    "Target",
    "ThreadMetadata",
    "WriteScheduler",
    "ProjectStorage",
    "Workspace",
]
