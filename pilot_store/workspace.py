"""In-memory session over ProjectStorage: the mutations the UI performs.

Holds the loaded ApplicationState and the projects touched so far. Every
mutation updates the records in place and schedules debounced saves for what
changed; nothing is written synchronously except blob copies and deletions.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel

from logging_bus import emit
from .errors import UnknownDocumentError, UnknownProjectError, UnknownThreadError
from .models import (
    AppSettings,
    ApplicationState,
    ChatMessageData,
    DocumentBlob,
    ProjectMetadata,
    Role,
    StoredDocument,
    Target,
    ThreadMetadata,
)
from .storage import ProjectStorage
from .utils import new_id, now_ms

DEFAULT_PROJECT_NAME = "Document Pilot"
UNTITLED_PROJECT_NAME = "Untitled Project"

Owner = Union[ProjectMetadata, ThreadMetadata]


class Workspace:
    def __init__(self, storage: ProjectStorage, state: ApplicationState):
        self.storage = storage
        self.state = state
        self._projects: Dict[str, ProjectMetadata] = {}

    @classmethod
    async def open(cls, storage: ProjectStorage) -> "Workspace":
        """Load app state (or start fresh) and repair the active selection."""
        state = await storage.load_app_state()
        fresh = state is None
        ws = cls(storage, state or ApplicationState())
        repaired = await ws._repair_selection()
        if fresh or repaired:
            ws._save_state()
        emit("INFO", "SYSTEM", "Workspace opened", fresh=fresh, repaired=repaired,
             project=ws.state.active_project_id, thread=ws.state.active_thread_id)
        return ws

    # -------- lookups ---------
    @property
    def active_project(self) -> Optional[ProjectMetadata]:
        pid = self.state.active_project_id
        return self._projects.get(pid) if pid is not None else None

    @property
    def active_thread(self) -> Optional[ThreadMetadata]:
        project = self.active_project
        if project is not None:
            return project.find_thread(self.state.active_thread_id)
        return self.state.find_thread(self.state.active_thread_id)

    async def get_project(self, project_id: str) -> ProjectMetadata:
        project = self._projects.get(project_id)
        if project is None:
            project = await self.storage.load_project(project_id)
            if project is None:
                raise UnknownProjectError(project_id)
            self._projects[project_id] = project
        return project

    async def _try_project(self, project_id: str) -> Optional[ProjectMetadata]:
        try:
            return await self.get_project(project_id)
        except UnknownProjectError:
            return None

    async def _first_loadable_project(self) -> Optional[ProjectMetadata]:
        for summary in self.state.project_index:
            project = await self._try_project(summary.id)
            if project is not None:
                return project
        return None

    # -------- selection ---------
    async def _repair_selection(self) -> bool:
        s = self.state
        before = (s.active_project_id, s.active_thread_id)
        if s.active_project_id is not None:
            project = await self._try_project(s.active_project_id) or await self._first_loadable_project()
            if project is not None:
                self._select_in_project(project)
            else:
                s.active_project_id = None
        if s.active_project_id is None and s.find_thread(s.active_thread_id) is None:
            if s.threads:
                s.active_thread_id = s.threads[0].id
            else:
                project = await self._first_loadable_project() or self._new_project(DEFAULT_PROJECT_NAME)
                self._select_in_project(project)
        return (s.active_project_id, s.active_thread_id) != before

    def _select_in_project(self, project: ProjectMetadata) -> None:
        self.state.active_project_id = project.id
        if project.find_thread(self.state.active_thread_id) is None:
            thread = project.threads[0] if project.threads else self._add_thread(project)
            self.state.active_thread_id = thread.id

    async def select(self, thread_id: str, project_id: Optional[str] = None) -> ThreadMetadata:
        if project_id is not None:
            project = await self.get_project(project_id)
            thread = project.find_thread(thread_id)
        else:
            thread = self.state.find_thread(thread_id)
        if thread is None:
            raise UnknownThreadError(thread_id)
        self.state.active_project_id = project_id
        self.state.active_thread_id = thread_id
        self._save_state()
        return thread

    # -------- projects ---------
    def _new_project(self, name: str) -> ProjectMetadata:
        now = now_ms()
        project = ProjectMetadata(id=new_id("project"), name=name, created_at=now, updated_at=now)
        project.threads.append(ThreadMetadata(id=new_id("thread"), last_updated=now))
        self._projects[project.id] = project
        self.state.project_index.append(project.summary())
        self.storage.save_project(project)
        emit("INFO", "SYSTEM", "Created project", project=project.id)
        return project

    async def create_project(self, name: str = UNTITLED_PROJECT_NAME) -> ProjectMetadata:
        project = self._new_project(name.strip() or UNTITLED_PROJECT_NAME)
        self._select_in_project(project)
        self._save_state()
        return project

    async def rename_project(self, project_id: str, name: str) -> ProjectMetadata:
        project = await self.get_project(project_id)
        project.name = name.strip() or project.name
        self._save_project(project)
        return project

    async def delete_project(self, project_id: str) -> None:
        if self.state.find_summary(project_id) is None:
            raise UnknownProjectError(project_id)
        await self.storage.delete_project(project_id)
        self._projects.pop(project_id, None)
        self.state.project_index = [p for p in self.state.project_index if p.id != project_id]
        if self.state.active_project_id == project_id:
            self.state.active_project_id = None
            self.state.active_thread_id = ""
            await self._repair_selection()
        self._save_state()

    # -------- threads ---------
    def _add_thread(self, project: ProjectMetadata) -> ThreadMetadata:
        thread = ThreadMetadata(id=new_id("thread"))
        project.threads.append(thread)
        self._save_project(project)
        return thread

    async def create_thread(self, project_id: Optional[str] = None) -> ThreadMetadata:
        if project_id is not None:
            thread = self._add_thread(await self.get_project(project_id))
        else:
            thread = ThreadMetadata(id=new_id("thread"))
            self.state.threads.append(thread)
        self.state.active_project_id = project_id
        self.state.active_thread_id = thread.id
        self._save_state()
        return thread

    async def delete_thread(self, thread_id: str, project_id: Optional[str] = None) -> None:
        if project_id is not None:
            project = await self.get_project(project_id)
            if project.find_thread(thread_id) is None:
                raise UnknownThreadError(thread_id)
            project.threads = [t for t in project.threads if t.id != thread_id]
            self._save_project(project)
        else:
            if self.state.find_thread(thread_id) is None:
                raise UnknownThreadError(thread_id)
            self.state.threads = [t for t in self.state.threads if t.id != thread_id]
            await self.storage.delete_thread_documents(thread_id)
        if self.state.active_thread_id == thread_id and self.state.active_project_id == project_id:
            self.state.active_thread_id = ""
            await self._repair_selection()
        self._save_state()

    # -------- messages ---------
    def _require_active_thread(self) -> ThreadMetadata:
        thread = self.active_thread
        if thread is None:
            raise UnknownThreadError(self.state.active_thread_id)
        return thread

    def append_message(self, role: Role, content: str, meta: Optional[str] = None) -> ChatMessageData:
        thread = self._require_active_thread()
        message = ChatMessageData(id=new_id("msg"), role=role, content=content, created_at=now_ms(), meta=meta)
        thread.append_message(message)
        self._save_active_owner()
        return message

    # -------- documents ---------
    async def _owner(self, target: Target) -> Tuple[Owner, List[ThreadMetadata]]:
        """The record listing ``target``'s documents, and the threads that may reference them."""
        if target.kind == "project":
            project = await self.get_project(target.id)
            return project, project.threads
        thread = self.state.find_thread(target.id)
        if thread is None:
            raise UnknownThreadError(target.id)
        return thread, [thread]

    def _save_owner(self, owner: Owner) -> None:
        if isinstance(owner, ProjectMetadata):
            self._save_project(owner)
        else:
            self._save_state()

    def _save_active_owner(self) -> None:
        project = self.active_project
        if project is not None:
            self._save_project(project)
        else:
            self._save_state()

    def _document_set(self) -> List[StoredDocument]:
        project = self.active_project
        if project is not None:
            return project.documents
        return self._require_active_thread().documents

    async def attach_document(self, target: Target, original_file_name: str, data: bytes) -> StoredDocument:
        owner, threads = await self._owner(target)
        document = await self.storage.copy_document(target, new_id("doc"), original_file_name, data)
        owner.documents.append(document)
        active = self.active_thread
        if active is not None and any(t is active for t in threads):
            active.active_document_id = document.id
        self._save_owner(owner)
        return document

    async def remove_document(self, target: Target, document_id: str) -> StoredDocument:
        owner, threads = await self._owner(target)
        document = next((d for d in owner.documents if d.id == document_id), None)
        if document is None:
            raise UnknownDocumentError(document_id)
        owner.documents = [d for d in owner.documents if d.id != document_id]
        for thread in threads:
            if thread.active_document_id == document_id:
                thread.active_document_id = None
        self._save_owner(owner)
        await self.storage.delete_document(target, document.stored_file_name)
        return document

    async def read_document(self, target: Target, document_id: str) -> DocumentBlob:
        owner, _ = await self._owner(target)
        document = next((d for d in owner.documents if d.id == document_id), None)
        if document is None:
            raise UnknownDocumentError(document_id)
        return await self.storage.read_document(target, document.stored_file_name)

    def set_active_document(self, document_id: Optional[str]) -> None:
        thread = self._require_active_thread()
        if document_id is not None and all(d.id != document_id for d in self._document_set()):
            raise UnknownDocumentError(document_id)
        thread.active_document_id = document_id
        self._save_active_owner()

    # -------- settings ---------
    def update_settings(self, **changes) -> AppSettings:
        merged = self.state.settings.model_dump()
        for name, value in changes.items():
            if isinstance(value, BaseModel):
                value = value.model_dump()
            if isinstance(value, dict) and isinstance(merged.get(name), dict):
                merged[name] = {**merged[name], **value}
            else:
                merged[name] = value
        self.state.settings = AppSettings.model_validate(merged)
        self._save_state()
        return self.state.settings

    # -------- persistence ---------
    def _save_project(self, project: ProjectMetadata) -> None:
        project.updated_at = now_ms()
        summary = self.state.find_summary(project.id)
        if summary is not None:
            summary.name = project.name
            summary.updated_at = project.updated_at
            self._save_state()
        self.storage.save_project(project)

    def _save_state(self) -> None:
        self.storage.save_app_state(self.state)

    async def flush(self) -> None:
        await self.storage.flush()


__all__ = ["Workspace", "DEFAULT_PROJECT_NAME"]
