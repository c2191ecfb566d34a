import queue, threading, time, json
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Any, List, Optional


@dataclass
class LogEvent:
    ts: float
    level: str   # "INFO","WARN","ERROR"
    kind: str    # "WRITE","LOAD","UPGRADE","BLOB","MIGRATE","SYSTEM"
    msg: str
    meta: Dict[str, Any]


_listeners: List[Callable[["LogEvent"], None]] = []
_q: "queue.Queue[LogEvent]" = queue.Queue()
_verbose = True
_level_filter: Dict[str, bool] = {"INFO": True, "WARN": True, "ERROR": True}
_kind_filter: Dict[str, bool] = {
    "WRITE": True,
    "LOAD": True,
    "UPGRADE": True,
    "BLOB": True,
    "MIGRATE": True,
    "SYSTEM": True,
}
_ring: List[LogEvent] = []
_ring_limit = 2000
_ring_lock = threading.Lock()

_file_path: Optional[str] = None
_file_q: "queue.Queue[LogEvent]" = queue.Queue()


def emit(level: str, kind: str, msg: str, **meta: Any) -> None:
    if level not in _level_filter:
        _level_filter[level] = True
    if kind not in _kind_filter:
        _kind_filter[kind] = True
    if not _level_filter.get(level, True):
        return
    if not _kind_filter.get(kind, True):
        return
    if not _verbose and level == "INFO" and kind != "SYSTEM":
        return
    evt = LogEvent(time.time(), level, kind, msg, meta)
    _q.put(evt)


def subscribe(callback: Callable[[LogEvent], None]) -> None:
    _listeners.append(callback)


def unsubscribe(callback: Callable[[LogEvent], None]) -> None:
    if callback in _listeners:
        _listeners.remove(callback)


def _dispatch(evt: LogEvent) -> None:
    with _ring_lock:
        _ring.append(evt)
        if len(_ring) > _ring_limit:
            del _ring[0 : len(_ring) - _ring_limit]
    for cb in list(_listeners):
        try:
            cb(evt)
        except Exception:
            # a broken listener must not stop delivery to the others
            pass
    if _file_path:
        _file_q.put(evt)


def drain() -> int:
    """Dispatch every queued event on the calling thread; returns the count."""
    n = 0
    while True:
        try:
            evt = _q.get_nowait()
        except queue.Empty:
            return n
        _dispatch(evt)
        n += 1


def start_dispatcher() -> None:
    def loop() -> None:
        while True:
            _dispatch(_q.get())

    threading.Thread(target=loop, daemon=True).start()

    def file_loop() -> None:
        fp = None
        while True:
            evt = _file_q.get()
            try:
                if _file_path:
                    if fp is None:
                        fp = open(_file_path, "a", encoding="utf-8")
                    fp.write(json.dumps(asdict(evt), ensure_ascii=False, default=str) + "\n")
                    fp.flush()
                else:
                    if fp:
                        fp.close()
                        fp = None
            except OSError:
                fp = None

    threading.Thread(target=file_loop, daemon=True).start()


def set_verbose(v: bool) -> None:
    global _verbose
    _verbose = v


def set_kind_filter(kinds: Dict[str, bool]) -> None:
    _kind_filter.update(kinds)


def set_file_logger(path: Optional[str]) -> None:
    global _file_path
    _file_path = path


def snapshot() -> List[LogEvent]:
    with _ring_lock:
        return list(_ring)
