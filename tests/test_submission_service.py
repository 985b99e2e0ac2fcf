"""Unit tests for SubmissionService with in-memory collections."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping
from unittest.mock import Mock

import pytest

from app.adapters.storage.base import AbstractCollection
from app.adapters.storage.cooldown import JsonFileCooldownStore
from app.core.errors import RateLimitAppError, StorageAppError
from app.schemas.questions import ProposeQuestionRequest, ReportQuestionRequest
from app.services.submission_service import SubmissionService


class MemoryCollection(AbstractCollection):
    """Collection double that keeps records in a list."""

    def __init__(self, name: str, *, fail: bool = False) -> None:
        self.name = name
        self.records: list[dict[str, Any]] = []
        self.fail = fail

    def append(self, record: Mapping[str, Any]) -> dict[str, Any]:
        if self.fail:
            raise StorageAppError(code="storage_write_failed", message="boom")
        entry = {**record, "createdAt": "2025-01-01T00:00:00.000Z"}
        self.records.append(entry)
        return entry

    def read_all(self) -> list[dict[str, Any]]:
        return list(self.records)


@pytest.fixture
def proposal(valid_proposal: dict) -> ProposeQuestionRequest:
    return ProposeQuestionRequest(**valid_proposal)


@pytest.fixture
def cooldown(tmp_path: Path) -> JsonFileCooldownStore:
    return JsonFileCooldownStore(
        tmp_path / "cooldowns.json", cooldown_seconds=60, clock=Mock(return_value=1_000.0)
    )


def test_propose_appends_and_records_cooldown(proposal, cooldown) -> None:
    proposed = MemoryCollection("proposed-questions")
    service = SubmissionService(proposed=proposed, reported=MemoryCollection("reported"), cooldown=cooldown)

    entry = service.propose(proposal, client_key="203.0.113.7")

    assert proposed.read_all() == [entry]
    assert entry["category"] == "web"
    assert cooldown.last_accepted("203.0.113.7") == 1_000.0


def test_propose_during_cooldown_raises(proposal, cooldown) -> None:
    proposed = MemoryCollection("proposed-questions")
    service = SubmissionService(proposed=proposed, reported=MemoryCollection("reported"), cooldown=cooldown)
    service.propose(proposal, client_key="a")

    with pytest.raises(RateLimitAppError) as exc_info:
        service.propose(proposal, client_key="a")

    assert exc_info.value.retry_after == 60
    assert len(proposed.records) == 1


def test_failed_write_does_not_start_cooldown(proposal, cooldown) -> None:
    service = SubmissionService(
        proposed=MemoryCollection("proposed-questions", fail=True),
        reported=MemoryCollection("reported"),
        cooldown=cooldown,
    )

    with pytest.raises(StorageAppError):
        service.propose(proposal, client_key="a")

    assert cooldown.last_accepted("a") is None


def test_propose_without_cooldown(proposal) -> None:
    proposed = MemoryCollection("proposed-questions")
    service = SubmissionService(proposed=proposed, reported=MemoryCollection("reported"))

    service.propose(proposal, client_key="a")
    service.propose(proposal, client_key="a")

    assert len(proposed.records) == 2


def test_report_appends_whitelisted_fields() -> None:
    reported = MemoryCollection("reported-questions")
    service = SubmissionService(proposed=MemoryCollection("proposed"), reported=reported)
    request = ReportQuestionRequest(question={"category": "web"}, reason=" incorrect ", extra="dropped")

    service.report(request)

    assert reported.records == [
        {
            "question": {"category": "web"},
            "reason": "incorrect",
            "description": "",
            "createdAt": "2025-01-01T00:00:00.000Z",
        }
    ]


def test_cooldown_write_failure_keeps_the_proposal(proposal, tmp_path: Path, caplog) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    cooldown = JsonFileCooldownStore(blocker / "cooldowns.json", cooldown_seconds=60, clock=Mock(return_value=1_000.0))
    proposed = MemoryCollection("proposed-questions")
    service = SubmissionService(proposed=proposed, reported=MemoryCollection("reported"), cooldown=cooldown)

    with caplog.at_level(logging.ERROR, logger="app.services.submission_service"):
        entry = service.propose(proposal, client_key="203.0.113.7")

    assert proposed.read_all() == [entry]
    assert cooldown.last_accepted("203.0.113.7") is None
    assert "submission.cooldown_not_recorded" in [r.getMessage() for r in caplog.records]


def test_report_logs_reason_length_not_text(caplog) -> None:
    service = SubmissionService(proposed=MemoryCollection("proposed"), reported=MemoryCollection("reported"))
    request = ReportQuestionRequest(question={"category": "web"}, reason="contains alice@example.com")

    with caplog.at_level(logging.INFO, logger="app.services.submission_service"):
        service.report(request)

    (record,) = [r for r in caplog.records if r.getMessage() == "submission.accepted"]
    assert not hasattr(record, "reason")
    assert record.reason_length == len("contains alice@example.com")
    assert "alice@example.com" not in str(record.__dict__)
