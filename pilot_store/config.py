"""Storage configuration: defaults, then an optional YAML file, then the environment."""
from __future__ import annotations
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_BASE_DIR = Path.home() / ".document-pilot" / "document-pilot-data"
DEFAULT_DEBOUNCE_MS = 500

ENV_DATA_DIR = "PILOT_STORE_DATA_DIR"
ENV_DEBOUNCE_MS = "PILOT_STORE_DEBOUNCE_MS"
ENV_LOG_FILE = "PILOT_STORE_LOG_FILE"


class StorageConfig(BaseModel):
    base_dir: Path = DEFAULT_BASE_DIR
    debounce_ms: int = Field(default=DEFAULT_DEBOUNCE_MS, ge=0)
    log_file: Optional[str] = None
    verbose: bool = True

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


def load_config(path: Optional[str] = None) -> StorageConfig:
    load_dotenv()
    data = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
    if os.getenv(ENV_DATA_DIR):
        data["base_dir"] = os.getenv(ENV_DATA_DIR)
    if os.getenv(ENV_DEBOUNCE_MS):
        data["debounce_ms"] = int(os.getenv(ENV_DEBOUNCE_MS))
    if os.getenv(ENV_LOG_FILE):
        data["log_file"] = os.getenv(ENV_LOG_FILE)
    config = StorageConfig(**data)
    config.base_dir = config.base_dir.expanduser()
    return config


__all__ = ["StorageConfig", "load_config", "DEFAULT_BASE_DIR", "DEFAULT_DEBOUNCE_MS"]
