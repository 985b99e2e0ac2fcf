"""Append-only collection interface.

Handlers and services depend on this abstraction so the flat-file backend can
be replaced (key-value store, embedded database) without touching them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class AbstractCollection(ABC):
    """An ordered, append-only sequence of JSON records."""

    name: str

    @abstractmethod
    def append(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Append a record, stamping it with a server-assigned ``createdAt``.

        Args:
            record: Validated record fields.

        Returns:
            The stored record, including ``createdAt``.

        Raises:
            StorageAppError: If the record could not be persisted.
        """
        raise NotImplementedError

    @abstractmethod
    def read_all(self) -> list[dict[str, Any]]:
        """Return every stored record in insertion order."""
        raise NotImplementedError
