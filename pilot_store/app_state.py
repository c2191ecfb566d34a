"""Top-level application state persistence."""
from __future__ import annotations
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from logging_bus import emit
from .atomic import read_json_dict
from .models import ApplicationState, to_json
from .scheduler import WriteScheduler
from .upgrades import APP_STATE_UPGRADES, apply_upgrades

APP_STATE_FILE = "app-state.json"
APP_STATE_KEY = "app-state"


class AppStateStore:
    def __init__(self, base_dir: Path, scheduler: WriteScheduler):
        self.base_dir = Path(base_dir)
        self.scheduler = scheduler

    @property
    def path(self) -> Path:
        return self.base_dir / APP_STATE_FILE

    async def load(self) -> Optional[ApplicationState]:
        data = await read_json_dict(self.path)
        if data is None:
            return None
        data, applied = apply_upgrades(data, APP_STATE_UPGRADES)
        if applied:
            emit("INFO", "UPGRADE", "Renamed app state fields", steps=applied)
        try:
            return ApplicationState.model_validate(data)
        except ValidationError as e:
            emit("WARN", "LOAD", "Invalid app state", errors=e.error_count())
            return None

    def save(self, state: ApplicationState) -> None:
        self.scheduler.schedule_write(APP_STATE_KEY, self.path, to_json(state))

    async def write_now(self, state: ApplicationState) -> None:
        await self.scheduler.write_now(APP_STATE_KEY, self.path, to_json(state))


__all__ = ["AppStateStore", "APP_STATE_FILE", "APP_STATE_KEY"]
