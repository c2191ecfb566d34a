"""Per-project metadata persistence."""
from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from logging_bus import emit
from .atomic import read_json_dict
from .blobs import documents_dir, remove_tree, target_dir
from .models import ProjectMetadata, Target, to_json
from .scheduler import WriteScheduler
from .upgrades import PROJECT_UPGRADES, apply_upgrades

PROJECT_FILE = "project.json"


def project_key(project_id: str) -> str:
    return f"project:{project_id}"


class ProjectStore:
    def __init__(self, base_dir: Path, scheduler: WriteScheduler):
        self.base_dir = Path(base_dir)
        self.scheduler = scheduler

    def project_dir(self, project_id: str) -> Path:
        return target_dir(self.base_dir, Target.project(project_id))

    def project_path(self, project_id: str) -> Path:
        return self.project_dir(project_id) / PROJECT_FILE

    def documents_dir(self, project_id: str) -> Path:
        return documents_dir(self.base_dir, Target.project(project_id))

    async def load(self, project_id: str) -> Optional[ProjectMetadata]:
        path = self.project_path(project_id)
        data = await read_json_dict(path)
        if data is None:
            return None
        data, applied = apply_upgrades(data, PROJECT_UPGRADES)
        try:
            project = ProjectMetadata.model_validate(data)
        except ValidationError as e:
            emit("WARN", "LOAD", "Invalid project file", project=project_id, errors=e.error_count())
            return None
        key = project_key(project_id)
        # persist now so the upgrade runs once per file; a pending save already holds newer content
        if applied and key not in self.scheduler.pending_keys():
            await self.scheduler.write_now(key, path, to_json(project))
            emit("INFO", "UPGRADE", "Upgraded project file", project=project_id, steps=applied)
        return project

    def save(self, project: ProjectMetadata) -> None:
        self.scheduler.schedule_write(project_key(project.id), self.project_path(project.id), to_json(project))

    async def write_now(self, project: ProjectMetadata) -> None:
        await self.scheduler.write_now(project_key(project.id), self.project_path(project.id), to_json(project))

    async def delete(self, project_id: str) -> None:
        await self.scheduler.settle(project_key(project_id))
        await asyncio.to_thread(remove_tree, self.project_dir(project_id))
        emit("INFO", "SYSTEM", "Deleted project", project=project_id)


__all__ = ["ProjectStore", "project_key", "PROJECT_FILE"]
