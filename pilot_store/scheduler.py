"""Debounced write scheduler: coalesces saves per key into one deferred atomic write."""
from __future__ import annotations
import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from logging_bus import emit
from .atomic import atomic_write_text
from .errors import FlushError

DEFAULT_DELAY = 0.5

Writer = Callable[[Path, str], None]
ErrorCallback = Callable[[str, BaseException], None]


@dataclass(frozen=True)
class PendingWrite:
    path: Path
    content: str


class WriteScheduler:
    def __init__(self, delay: float = DEFAULT_DELAY, writer: Writer = atomic_write_text,
                 on_error: Optional[ErrorCallback] = None):
        self.delay = delay
        self._writer = writer
        self._on_error = on_error
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._pending: Dict[str, PendingWrite] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}

    def schedule_write(self, key: str, path: Path, content: str) -> None:
        loop = asyncio.get_running_loop()
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        self._pending[key] = PendingWrite(Path(path), content)
        self._timers[key] = loop.call_later(self.delay, self._fire, key)

    def discard(self, key: str) -> bool:
        """Drop a pending write for ``key`` without performing it."""
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        return self._pending.pop(key, None) is not None

    def pending_keys(self) -> FrozenSet[str]:
        return frozenset(self._pending)

    async def settle(self, key: str) -> None:
        """Drop the pending write for ``key`` and wait out any write already running."""
        self.discard(key)
        task = self._in_flight.get(key)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def write_now(self, key: str, path: Path, content: str) -> None:
        """Write ``content`` immediately, after any running write for ``key``. Errors propagate."""
        self.discard(key)
        await self._start(key, PendingWrite(Path(path), content), self._write)

    def _fire(self, key: str) -> None:
        self._timers.pop(key, None)
        pending = self._pending.pop(key, None)
        if pending is None:
            return
        self._start(key, pending, self._background_write)

    def _start(self, key: str, pending: PendingWrite, runner) -> asyncio.Task:
        previous = self._in_flight.get(key)
        task = asyncio.get_running_loop().create_task(runner(key, pending, previous))
        self._in_flight[key] = task
        task.add_done_callback(lambda t, k=key: self._forget(k, t))
        return task

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _write(self, key: str, pending: PendingWrite, previous: Optional[asyncio.Task]) -> None:
        if previous is not None:
            # one physical write per key at a time
            await asyncio.gather(previous, return_exceptions=True)
        await asyncio.to_thread(self._writer, pending.path, pending.content)
        emit("INFO", "WRITE", "Wrote", key=key, path=str(pending.path))

    async def _background_write(self, key: str, pending: PendingWrite,
                                previous: Optional[asyncio.Task]) -> None:
        try:
            await self._write(key, pending, previous)
        except Exception as exc:
            emit("ERROR", "WRITE", "Debounced write failed", key=key, path=str(pending.path), error=repr(exc))
            if self._on_error is not None:
                try:
                    self._on_error(key, exc)
                except Exception as cb_exc:
                    emit("ERROR", "WRITE", "Write error callback failed", key=key, error=repr(cb_exc))

    async def flush_all(self) -> None:
        """Perform every pending write now and wait for all writes, including in-flight ones."""
        for timer in self._timers.values():
            timer.cancel()
        batch: List[Tuple[str, PendingWrite]] = list(self._pending.items())
        self._timers.clear()
        self._pending.clear()
        background = list(self._in_flight.values())
        flushed = [self._start(key, pending, self._write) for key, pending in batch]
        if background:
            await asyncio.gather(*background, return_exceptions=True)
        results = await asyncio.gather(*flushed, return_exceptions=True)
        failures: Dict[str, BaseException] = {}
        for (key, pending), result in zip(batch, results):
            if isinstance(result, BaseException):
                emit("ERROR", "WRITE", "Flush write failed", key=key, path=str(pending.path), error=repr(result))
                failures[key] = result
        emit("INFO", "WRITE", "Flushed", count=len(batch), failed=len(failures))
        if failures:
            raise FlushError(failures)


__all__ = ["WriteScheduler", "PendingWrite", "DEFAULT_DELAY"]
