"""Per-target document blob storage."""
from __future__ import annotations
import asyncio
import shutil
from pathlib import Path

from logging_bus import emit
from .atomic import write_bytes_async
from .errors import DocumentNotFoundError
from .models import DocumentBlob, StoredDocument, Target
from .utils import (
    infer_document_kind,
    now_ms,
    original_name_from_stored,
    sanitize_file_name,
    stored_file_name_for,
)

PROJECTS_DIR = "projects"
THREADS_DIR = "threads"
DOCUMENTS_DIR = "documents"


def target_dir(base_dir: Path, target: Target) -> Path:
    parent = PROJECTS_DIR if target.kind == "project" else THREADS_DIR
    return Path(base_dir) / parent / sanitize_file_name(target.id)


def documents_dir(base_dir: Path, target: Target) -> Path:
    return target_dir(base_dir, target) / DOCUMENTS_DIR


class BlobStore:
    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def documents_dir(self, target: Target) -> Path:
        return documents_dir(self.base_dir, target)

    def blob_path(self, target: Target, stored_file_name: str) -> Path:
        return self.documents_dir(target) / sanitize_file_name(stored_file_name)

    async def store(self, target: Target, document_id: str, original_file_name: str,
                    data: bytes) -> StoredDocument:
        stored_file_name = stored_file_name_for(document_id, original_file_name)
        dest = self.documents_dir(target) / stored_file_name
        await write_bytes_async(dest, data)
        emit("INFO", "BLOB", "Stored document", target=target.id, file=stored_file_name, size=len(data))
        return StoredDocument(
            id=document_id,
            original_file_name=original_file_name,
            stored_file_name=stored_file_name,
            size_bytes=len(data),
            added_at=now_ms(),
        )

    async def read(self, target: Target, stored_file_name: str) -> DocumentBlob:
        path = self.blob_path(target, stored_file_name)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            raise DocumentNotFoundError(str(path)) from None
        original = original_name_from_stored(path.name)
        return DocumentBlob(data=data, original_file_name=original, kind=infer_document_kind(original))

    async def delete(self, target: Target, stored_file_name: str) -> None:
        path = self.blob_path(target, stored_file_name)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        emit("INFO", "BLOB", "Deleted document", target=target.id, file=path.name)

    async def delete_target(self, target: Target) -> None:
        """Remove every blob a target owns, along with its directory."""
        await asyncio.to_thread(remove_tree, target_dir(self.base_dir, target))


def remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass


__all__ = ["BlobStore", "documents_dir", "target_dir", "remove_tree"]
