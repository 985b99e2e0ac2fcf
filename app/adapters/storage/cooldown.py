"""Durable per-client cooldown.

Maps client identifier to the UNIX time of that client's last accepted write,
persisted as a JSON object so the cooldown survives process restarts. The
file follows the same lenient recovery policy as the collections.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from pathlib import Path
from typing import Callable

from app.adapters.storage.json_file import read_json_lenient, write_json_atomic
from app.core.errors import StorageAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class JsonFileCooldownStore:
    """Last-accepted-write timestamps per client, stored in a JSON file."""

    def __init__(
        self,
        path: Path | str,
        *,
        cooldown_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if cooldown_seconds < 1:
            raise ValueError("cooldown_seconds must be >= 1")
        self.path = Path(path).resolve()
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()

    def _load(self) -> dict[str, float]:
        raw = read_json_lenient(self.path, dict, collection=self.path.stem)
        return {
            str(key): float(value)
            for key, value in raw.items()
            if isinstance(value, (int, float)) and not isinstance(value, bool)
        }

    def last_accepted(self, client_key: str) -> float | None:
        with self._lock:
            return self._load().get(client_key)

    def retry_after(self, client_key: str, now: float | None = None) -> int | None:
        """Seconds ``client_key`` must still wait, or None if it may write now.

        Args:
            client_key: Client identifier.
            now: Current UNIX time; defaults to the store's clock.

        Returns:
            A positive number of seconds while the cooldown is running,
            otherwise None.
        """

        current = self._clock() if now is None else now
        last = self.last_accepted(client_key)
        if last is None:
            return None

        elapsed = current - last
        if elapsed >= self.cooldown_seconds:
            return None
        # A clock that moved backwards never extends the wait past one cooldown.
        wait = min(self.cooldown_seconds, int(math.ceil(self.cooldown_seconds - elapsed)))
        return max(1, wait)

    def record(self, client_key: str, now: float | None = None) -> None:
        """Remember ``now`` as the client's last accepted write.

        Raises:
            StorageAppError: If the cooldown map cannot be written.
        """

        current = self._clock() if now is None else now
        with self._lock:
            entries = self._load()
            entries[client_key] = current
            try:
                write_json_atomic(self.path, entries)
            except OSError as exc:
                logger.error(
                    "cooldown.write_failed",
                    extra={
                        "client_hash": hash_identifier(client_key),
                        "error_type": type(exc).__name__,
                    },
                )
                raise StorageAppError(
                    code="cooldown_write_failed",
                    message="Could not persist propose cooldown",
                    details={"path": self.path.name},
                ) from exc
