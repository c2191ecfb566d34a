from __future__ import annotations
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from .utils import infer_document_kind, now_ms

Role = Literal["user", "assistant", "system"]
ReasoningEffort = Literal["low", "medium", "high", "xhigh"]
DocumentKind = Literal["tabular", "pdf"]
TargetKind = Literal["project", "thread"]

DEFAULT_THREAD_TITLE = "New Thread"
DEFAULT_TITLES = (DEFAULT_THREAD_TITLE, "New Session")
TITLE_LENGTH = 42


class Record(BaseModel):
    """Base for persisted records: snake_case in Python, camelCase on disk."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessageData(Record):
    model_config = ConfigDict(frozen=True)
    id: str
    role: Role
    content: str
    created_at: int
    meta: Optional[str] = None


class StoredDocument(Record):
    id: str
    original_file_name: str
    stored_file_name: str
    size_bytes: int
    added_at: int

    @computed_field
    @property
    def kind(self) -> DocumentKind:
        return infer_document_kind(self.original_file_name)


class ThreadMetadata(Record):
    id: str
    title: str = DEFAULT_THREAD_TITLE
    messages: List[ChatMessageData] = Field(default_factory=list)
    documents: List[StoredDocument] = Field(default_factory=list)
    active_document_id: Optional[str] = None
    last_updated: int = Field(default_factory=now_ms)

    def append_message(self, message: ChatMessageData) -> None:
        self.messages.append(message)
        self.last_updated = max(self.last_updated, message.created_at)
        if self.title in DEFAULT_TITLES and message.role == "user":
            self.title = message.content[:TITLE_LENGTH].strip() or DEFAULT_THREAD_TITLE


class ProjectSummary(Record):
    id: str
    name: str
    updated_at: int


class ProjectMetadata(Record):
    id: str
    name: str
    documents: List[StoredDocument] = Field(default_factory=list)
    threads: List[ThreadMetadata] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    def find_thread(self, thread_id: str) -> Optional[ThreadMetadata]:
        return next((t for t in self.threads if t.id == thread_id), None)

    def summary(self) -> ProjectSummary:
        return ProjectSummary(id=self.id, name=self.name, updated_at=self.updated_at)


class KeyboardShortcuts(Record):
    send_message: str = "Meta+Enter"
    new_thread: str = "Meta+Shift+N"


class AppSettings(Record):
    model: str = "gpt-5-mini"
    reasoning_effort: ReasoningEffort = "high"
    shortcuts: KeyboardShortcuts = Field(default_factory=KeyboardShortcuts)


class ApplicationState(Record):
    project_index: List[ProjectSummary] = Field(default_factory=list)
    threads: List[ThreadMetadata] = Field(default_factory=list)
    active_project_id: Optional[str] = None
    active_thread_id: str = ""
    settings: AppSettings = Field(default_factory=AppSettings)

    def find_thread(self, thread_id: str) -> Optional[ThreadMetadata]:
        return next((t for t in self.threads if t.id == thread_id), None)

    def find_summary(self, project_id: str) -> Optional[ProjectSummary]:
        return next((p for p in self.project_index if p.id == project_id), None)


class Target(BaseModel):
    """Owner of a document blob: a project or a global thread."""
    model_config = ConfigDict(frozen=True)
    kind: TargetKind
    id: str

    @classmethod
    def project(cls, project_id: str) -> "Target":
        return cls(kind="project", id=project_id)

    @classmethod
    def thread(cls, thread_id: str) -> "Target":
        return cls(kind="thread", id=thread_id)


class DocumentBlob(BaseModel):
    data: bytes
    original_file_name: str
    kind: DocumentKind


def to_json(record: BaseModel) -> str:
    """Pretty-printed on-disk form of a record."""
    return record.model_dump_json(by_alias=True, indent=2)


__all__ = [
    "Role",
    "ReasoningEffort",
    "DocumentKind",
    "DEFAULT_THREAD_TITLE",
    "ChatMessageData",
    "StoredDocument",
    "ThreadMetadata",
    "ProjectSummary",
    "ProjectMetadata",
    "KeyboardShortcuts",
    "AppSettings",
    "ApplicationState",
    "Target",
    "DocumentBlob",
    "to_json",
]
