"""JSON-array file collection.

Each collection is one file holding a single JSON array. An append reads the
whole array, adds the record and writes the whole array back.

Recovery policy: a missing, empty, unparsable or non-array file is read as an
empty collection. The next append then replaces it with a valid array.

Writes to the same path are serialized by a process-wide per-path lock, and
the new content is written to a temporary sibling that atomically replaces
the target. Concurrent writers in other processes are not coordinated.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping

from app.adapters.storage.base import AbstractCollection
from app.core.errors import StorageAppError

logger = logging.getLogger(__name__)

_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _path_locks_guard:
        lock = _path_locks.get(path)
        if lock is None:
            lock = threading.Lock()
            _path_locks[path] = lock
        return lock


def utc_timestamp(now: datetime | None = None) -> str:
    """Format a UTC timestamp as ISO-8601 with millisecond precision and ``Z``.

    >>> utc_timestamp(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
    '2024-05-01T12:00:00.000Z'
    """

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def read_json_lenient(path: Path, expected: type, *, collection: str) -> Any:
    """Read a JSON document, returning an empty ``expected`` on any failure.

    Args:
        path: File to read.
        expected: ``list`` or ``dict``; anything else parsed is discarded.
        collection: Name used in log records.

    Returns:
        The parsed value, or ``expected()`` when the file is missing, empty,
        unreadable, invalid, or of the wrong shape.
    """

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return expected()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(
            "storage.read_failed",
            extra={"collection": collection, "error_type": type(exc).__name__},
        )
        return expected()

    if not content.strip():
        return expected()

    try:
        value = json.loads(content)
    except json.JSONDecodeError:
        logger.warning(
            "storage.recovered_invalid_json",
            extra={"collection": collection, "size": len(content)},
        )
        return expected()

    if not isinstance(value, expected):
        logger.warning(
            "storage.recovered_wrong_shape",
            extra={
                "collection": collection,
                "expected": expected.__name__,
                "actual": type(value).__name__,
            },
        )
        return expected()

    return value


def write_json_atomic(path: Path, value: Any) -> None:
    """Serialize ``value`` to ``path`` through a temporary sibling file.

    Raises:
        OSError: If the directory cannot be created or the file written.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(value, fh, ensure_ascii=False, indent=2)
            fh.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class JsonFileCollection(AbstractCollection):
    """Append-only collection stored as one JSON array file."""

    def __init__(
        self,
        path: Path | str,
        *,
        name: str | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.path = Path(path).resolve()
        self.name = name or self.path.stem
        self._now = now

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"JsonFileCollection(name={self.name!r}, path={str(self.path)!r})"

    def read_all(self) -> list[dict[str, Any]]:
        return read_json_lenient(self.path, list, collection=self.name)

    def append(self, record: Mapping[str, Any]) -> dict[str, Any]:
        entry = dict(record)
        entry["createdAt"] = utc_timestamp(self._now())

        with _lock_for(self.path):
            existing = self.read_all()
            existing.append(entry)
            try:
                write_json_atomic(self.path, existing)
            except OSError as exc:
                logger.error(
                    "storage.write_failed",
                    extra={
                        "collection": self.name,
                        "error_type": type(exc).__name__,
                        "error_msg": str(exc),
                    },
                )
                raise StorageAppError(
                    code="storage_write_failed",
                    message=f"Could not persist record to collection '{self.name}'",
                    details={"collection": self.name},
                ) from exc

        logger.debug(
            "storage.appended",
            extra={"collection": self.name, "size": len(existing)},
        )
        return entry
