"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points the global settings at a throwaway data directory so importing
the app never writes next to the source tree.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Callable

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_DATA_DIR", tempfile.mkdtemp(prefix="quiz-data-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import AppSettings, LogSettings, Settings


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Per-test data directory (not created up front)."""
    return tmp_path / "data"


@pytest.fixture
def make_settings(data_dir: Path, tmp_path: Path) -> Callable[..., Settings]:
    """Build isolated settings; keyword arguments override AppSettings fields."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "data_dir": data_dir,
            "questions_file": tmp_path / "questions.json",
        }
        values.update(overrides)
        return Settings(app=AppSettings(**values), log=LogSettings(level="WARNING"))

    return _make


@pytest.fixture
def make_app(make_settings: Callable[..., Settings]) -> Callable[..., FastAPI]:
    """Build an app with a fresh rate limiter and isolated storage."""

    def _make(**overrides: Any) -> FastAPI:
        return create_app(make_settings(**overrides), configure_logs=False)

    return _make


@pytest.fixture
def client(make_app: Callable[..., FastAPI]) -> TestClient:
    """Test client with default quotas and cooldown enabled."""
    return TestClient(make_app())


@pytest.fixture
def valid_proposal() -> dict[str, Any]:
    return {
        "category": "web",
        "difficulty": "medium",
        "frequency": "common",
        "translations": {
            "en": {"question": "What is SSRF?", "answer": "Server-side request forgery."},
            "fr": {"question": "Qu'est-ce que la SSRF ?", "answer": "Falsification de requête côté serveur."},
        },
    }
