"""Ordered schema upgrade steps for persisted JSON.

Each step takes the parsed document and returns a new dict; inputs are never
mutated, so a step can be tested on its own. A step that does not apply returns
an equal dict, which is how callers tell whether anything was upgraded.
"""
from __future__ import annotations
import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

Doc = Dict[str, Any]


@dataclass(frozen=True)
class UpgradeStep:
    version: int
    name: str
    apply: Callable[[Doc], Doc]


def rename_key(data: Doc, old: str, new: str) -> Doc:
    """Rename ``old`` to ``new`` when only the old key is present."""
    out = copy.deepcopy(data)
    if old in out and new not in out:
        out[new] = out.pop(old)
    return out


# app-state.json

def rename_global_threads(data: Doc) -> Doc:
    return rename_key(data, "globalThreads", "threads")


def rename_active_session(data: Doc) -> Doc:
    return rename_key(data, "activeSessionId", "activeThreadId")


def rename_new_session_shortcut(data: Doc) -> Doc:
    out = copy.deepcopy(data)
    settings = out.get("settings")
    if isinstance(settings, dict) and isinstance(settings.get("shortcuts"), dict):
        settings["shortcuts"] = rename_key(settings["shortcuts"], "newSession", "newThread")
    return out


APP_STATE_UPGRADES: Tuple[UpgradeStep, ...] = (
    UpgradeStep(1, "globalThreads->threads", rename_global_threads),
    UpgradeStep(2, "activeSessionId->activeThreadId", rename_active_session),
    UpgradeStep(3, "shortcuts.newSession->newThread", rename_new_session_shortcut),
)


# project.json

def sessions_to_threads(data: Doc) -> Doc:
    return rename_key(data, "sessions", "threads")


def thread_document_defaults(data: Doc) -> Doc:
    out = copy.deepcopy(data)
    threads = out.get("threads")
    if isinstance(threads, list):
        for thread in threads:
            if isinstance(thread, dict):
                thread.setdefault("documents", [])
                thread.setdefault("activeDocumentId", None)
    return out


def project_document_defaults(data: Doc) -> Doc:
    out = copy.deepcopy(data)
    out.setdefault("documents", [])
    return out


PROJECT_UPGRADES: Tuple[UpgradeStep, ...] = (
    UpgradeStep(1, "sessions->threads", sessions_to_threads),
    UpgradeStep(2, "thread documents", thread_document_defaults),
    UpgradeStep(3, "project documents", project_document_defaults),
)


def apply_upgrades(data: Doc, steps: Tuple[UpgradeStep, ...]) -> Tuple[Doc, List[str]]:
    """Run ``steps`` in version order; returns the result and the names that changed it."""
    applied: List[str] = []
    for step in sorted(steps, key=lambda s: s.version):
        upgraded = step.apply(data)
        if upgraded != data:
            applied.append(step.name)
        data = upgraded
    return data, applied


__all__ = [
    "UpgradeStep",
    "APP_STATE_UPGRADES",
    "PROJECT_UPGRADES",
    "apply_upgrades",
    "rename_key",
]
