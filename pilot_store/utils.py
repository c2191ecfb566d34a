import random
import re
import string
import time

_UNSAFE = re.compile(r"[^a-zA-Z0-9._-]")
_BASE36 = string.digits + string.ascii_lowercase

MAX_NAME_LENGTH = 180
MAX_ID_LENGTH = 64
NAME_SEPARATOR = "-"


def now_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


def _base36(n: int) -> str:
    if n <= 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def new_id(prefix: str) -> str:
    """Return ``<prefix>-<random>-<time>`` with both parts in base36."""
    rand = "".join(random.choices(_BASE36, k=7))
    return f"{prefix}-{rand}-{_base36(now_ms())}"


def sanitize_file_name(name: str, limit: int = MAX_NAME_LENGTH) -> str:
    return _UNSAFE.sub("_", name)[:limit]


def sanitize_document_id(document_id: str) -> str:
    # no separator inside the id part, so the first "-" of a stored name splits it
    return sanitize_file_name(document_id, MAX_ID_LENGTH).replace(NAME_SEPARATOR, "_")


def stored_file_name_for(document_id: str, original_file_name: str) -> str:
    return f"{sanitize_document_id(document_id)}{NAME_SEPARATOR}{sanitize_file_name(original_file_name)}"


def original_name_from_stored(stored_file_name: str) -> str:
    _, sep, rest = stored_file_name.partition(NAME_SEPARATOR)
    return rest if sep else stored_file_name


def infer_document_kind(file_name: str) -> str:
    return "pdf" if file_name.lower().endswith(".pdf") else "tabular"


__all__ = [
    "now_ms",
    "new_id",
    "sanitize_file_name",
    "sanitize_document_id",
    "stored_file_name_for",
    "original_name_from_stored",
    "infer_document_kind",
]
