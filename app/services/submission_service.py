"""Submission service: gates and persists user-submitted questions.

Flow for a proposal:
- Durable per-client cooldown check (survives restarts)
- Append to the proposed-questions collection
- Record the accepted write in the cooldown map

Reports skip the cooldown and are appended directly. The generic per-route
rate limit runs earlier, in the HTTP middleware.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from app.adapters.storage.base import AbstractCollection
from app.adapters.storage.cooldown import JsonFileCooldownStore
from app.core.errors import RateLimitAppError, StorageAppError
from app.core.logging import hash_identifier
from app.schemas.questions import ProposeQuestionRequest, ReportQuestionRequest

logger = logging.getLogger(__name__)


class SubmissionService:
    """Writes proposed and reported questions to their collections."""

    def __init__(
        self,
        *,
        proposed: AbstractCollection,
        reported: AbstractCollection,
        cooldown: JsonFileCooldownStore | None = None,
    ) -> None:
        self._proposed = proposed
        self._reported = reported
        self._cooldown = cooldown
        # Check, append and record must not interleave for a proposal.
        self._propose_lock = threading.Lock()

    def propose(self, request: ProposeQuestionRequest, client_key: str) -> dict[str, Any]:
        """Store a proposed question unless the client is cooling down.

        Args:
            request: Validated proposal.
            client_key: Best-effort client identifier.

        Returns:
            The stored record, including ``createdAt``.

        Raises:
            RateLimitAppError: If the client's last accepted proposal is too recent.
            StorageAppError: If the proposal could not be persisted. A cooldown
                write failure after a stored proposal is logged, not raised.
        """

        client_hash = hash_identifier(client_key)

        with self._propose_lock:
            if self._cooldown is not None:
                retry_after = self._cooldown.retry_after(client_key)
                if retry_after is not None:
                    logger.warning(
                        "submission.cooldown_active",
                        extra={
                            "collection": self._proposed.name,
                            "client_hash": client_hash,
                            "retry_after_s": retry_after,
                        },
                    )
                    raise RateLimitAppError(
                        code="propose_cooldown",
                        message="Too many requests",
                        details={"retry_after": retry_after},
                        retry_after=retry_after,
                    )

            entry = self._proposed.append(request.to_record())

            # The proposal is committed; a lost cooldown must not turn it into a 500.
            if self._cooldown is not None:
                try:
                    self._cooldown.record(client_key)
                except StorageAppError as exc:
                    logger.error(
                        "submission.cooldown_not_recorded",
                        extra={
                            "collection": self._proposed.name,
                            "client_hash": client_hash,
                            "error_code": exc.code,
                        },
                    )

        logger.info(
            "submission.accepted",
            extra={
                "collection": self._proposed.name,
                "client_hash": client_hash,
                "category": request.category,
            },
        )
        return entry

    def report(self, request: ReportQuestionRequest) -> dict[str, Any]:
        """Store a report about an existing question."""

        entry = self._reported.append(request.to_record())
        logger.info(
            "submission.accepted",
            extra={
                "collection": self._reported.name,
                "reason_length": len(request.reason),
                "has_description": bool(request.description),
            },
        )
        return entry
