"""Tests for the durable per-client propose cooldown."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from app.adapters.storage.cooldown import JsonFileCooldownStore
from app.core.errors import StorageAppError


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=10_000.0)


def test_unknown_client_may_write(tmp_path: Path, clock: Mock) -> None:
    store = JsonFileCooldownStore(tmp_path / "cooldowns.json", cooldown_seconds=60, clock=clock)

    assert store.retry_after("203.0.113.7") is None
    assert store.last_accepted("203.0.113.7") is None


def test_retry_after_counts_down_then_clears(tmp_path: Path, clock: Mock) -> None:
    store = JsonFileCooldownStore(tmp_path / "cooldowns.json", cooldown_seconds=60, clock=clock)
    store.record("203.0.113.7")

    assert store.retry_after("203.0.113.7") == 60

    clock.return_value = 10_010.0
    assert store.retry_after("203.0.113.7") == 50

    clock.return_value = 10_059.5
    assert store.retry_after("203.0.113.7") == 1

    clock.return_value = 10_060.0
    assert store.retry_after("203.0.113.7") is None


def test_cooldown_is_per_client(tmp_path: Path, clock: Mock) -> None:
    store = JsonFileCooldownStore(tmp_path / "cooldowns.json", cooldown_seconds=60, clock=clock)
    store.record("a")

    assert store.retry_after("a") == 60
    assert store.retry_after("b") is None


def test_cooldown_survives_new_instance(tmp_path: Path, clock: Mock) -> None:
    path = tmp_path / "cooldowns.json"
    JsonFileCooldownStore(path, cooldown_seconds=60, clock=clock).record("a")

    restarted = JsonFileCooldownStore(path, cooldown_seconds=60, clock=clock)

    assert restarted.retry_after("a") == 60
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": 10_000.0}


@pytest.mark.parametrize("content", ["", "{oops", "[]", '"text"'])
def test_unusable_file_reads_as_empty_map(tmp_path: Path, clock: Mock, content: str) -> None:
    path = tmp_path / "cooldowns.json"
    path.write_text(content, encoding="utf-8")
    store = JsonFileCooldownStore(path, cooldown_seconds=60, clock=clock)

    assert store.retry_after("a") is None

    store.record("a")
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": 10_000.0}


def test_non_numeric_entries_are_ignored(tmp_path: Path, clock: Mock) -> None:
    path = tmp_path / "cooldowns.json"
    path.write_text(json.dumps({"a": "yesterday", "b": True, "c": 9_990}), encoding="utf-8")
    store = JsonFileCooldownStore(path, cooldown_seconds=60, clock=clock)

    assert store.retry_after("a") is None
    assert store.retry_after("b") is None
    assert store.retry_after("c") == 50


def test_record_failure_raises_storage_error(tmp_path: Path, clock: Mock) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    store = JsonFileCooldownStore(blocker / "cooldowns.json", cooldown_seconds=60, clock=clock)

    with pytest.raises(StorageAppError):
        store.record("a")


def test_invalid_cooldown_seconds(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        JsonFileCooldownStore(tmp_path / "c.json", cooldown_seconds=0)


def test_backwards_clock_never_exceeds_one_cooldown(tmp_path: Path, clock: Mock) -> None:
    store = JsonFileCooldownStore(tmp_path / "cooldowns.json", cooldown_seconds=60, clock=clock)
    store.record("a")

    clock.return_value = 9_900.0

    assert store.retry_after("a") == 60
