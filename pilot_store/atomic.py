"""File I/O helpers. Writes go to a temp sibling and are renamed over the target,
so readers never see partial content."""
import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from logging_bus import emit

PathLike = Union[str, Path]

TMP_SUFFIX = ".tmp"


def tmp_path_for(path: PathLike) -> Path:
    path = Path(path)
    return path.with_name(path.name + TMP_SUFFIX)


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tmp_path_for(path)
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def atomic_write_text(path: PathLike, content: str) -> None:
    atomic_write_bytes(path, content.encode("utf-8"))


async def write_bytes_async(path: PathLike, data: bytes) -> None:
    await asyncio.to_thread(atomic_write_bytes, path, data)


def _read_json_dict(path: Path) -> Optional[Dict[str, Any]]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        emit("WARN", "LOAD", "Unreadable file", path=str(path), error=repr(e))
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        emit("WARN", "LOAD", "Malformed JSON", path=str(path), error=str(e))
        return None
    if not isinstance(data, dict):
        emit("WARN", "LOAD", "Expected a JSON object", path=str(path))
        return None
    return data


async def read_json_dict(path: PathLike) -> Optional[Dict[str, Any]]:
    """Parsed JSON object at ``path``, or None when missing or unparsable."""
    return await asyncio.to_thread(_read_json_dict, Path(path))


__all__ = [
    "atomic_write_bytes",
    "atomic_write_text",
    "write_bytes_async",
    "read_json_dict",
    "tmp_path_for",
]
