"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Details are logged server-side only; public responses use fixed messages.
    """

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    collection: str
    path: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class StorageAppError(AppError):
    """Raised when a collection or cooldown file cannot be written."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client must wait before submitting again.

    Attributes:
        retry_after: Seconds the client should wait before retrying.
    """

    retry_after: int = 0
