"""
Storage errors and their user-facing messages.

Loads that find nothing return None instead of raising; these types cover the
failures a caller is expected to surface.
"""
from typing import Dict


class StorageErrors:
    """Centralized actionable error messages."""

    FLUSH_FAILED = (
        "Some changes could not be saved to disk. Check free space and permissions."
    )

    LEGACY_UNREADABLE = (
        "The legacy data could not be read. It was left untouched; nothing was migrated."
    )

    DOCUMENT_MISSING = (
        "The document file is missing from local storage. Attach it again."
    )


class StorageError(Exception):
    """Base class for persistence failures."""


class DocumentNotFoundError(StorageError, FileNotFoundError):
    def __init__(self, path: str):
        super().__init__(f"{StorageErrors.DOCUMENT_MISSING} ({path})")
        self.path = path


class FlushError(StorageError):
    """One or more pending writes failed while flushing."""

    def __init__(self, failures: Dict[str, BaseException]):
        keys = ", ".join(sorted(failures))
        super().__init__(f"{StorageErrors.FLUSH_FAILED} Failed keys: {keys}")
        self.failures = failures


class LegacyMigrationError(StorageError, ValueError):
    def __init__(self, detail: str):
        super().__init__(f"{StorageErrors.LEGACY_UNREADABLE} {detail}")
        self.detail = detail


class UnknownProjectError(StorageError, KeyError):
    def __init__(self, project_id: str):
        super().__init__(project_id)
        self.project_id = project_id

    def __str__(self) -> str:
        return f"Unknown project: {self.project_id}"


class UnknownThreadError(StorageError, KeyError):
    def __init__(self, thread_id: str):
        super().__init__(thread_id)
        self.thread_id = thread_id

    def __str__(self) -> str:
        return f"Unknown thread: {self.thread_id}"


class UnknownDocumentError(StorageError, KeyError):
    def __init__(self, document_id: str):
        super().__init__(document_id)
        self.document_id = document_id

    def __str__(self) -> str:
        return f"Unknown document: {self.document_id}"


__all__ = [
    "StorageErrors",
    "StorageError",
    "DocumentNotFoundError",
    "FlushError",
    "LegacyMigrationError",
    "UnknownProjectError",
    "UnknownThreadError",
    "UnknownDocumentError",
]
