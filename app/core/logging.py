"""Structured logging for the submission gateway.

Every record leaves the process as one JSON line (or a plain line for local
use) carrying the request id of the HTTP request that produced it. Client
network identity and submitted free text are replaced with ``[REDACTED]``
before any handler formats the record; callers that need to correlate a
client log ``hash_identifier(client_key)`` instead.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from app.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        # network identity
        "authorization",
        "cookie",
        "set-cookie",
        "forwarded",
        "x-forwarded-for",
        "x-real-ip",
        "client_ip",
        "client_key",
        # submitted text
        "translations",
        "answer",
        "reason",
        "description",
    }
)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _request_id.set(request_id)


def get_request_id() -> str | None:
    return _request_id.get()


def clear_request_id() -> None:
    _request_id.set(None)


def hash_identifier(value: str) -> str:
    """Short SHA-256 digest of a client identifier (16 hex chars)."""

    return hashlib.sha256(value.encode()).hexdigest()[:16]


class Redactor:
    """Replaces values stored under sensitive keys, at any nesting depth."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        keys = SENSITIVE_KEYS_DEFAULT if sensitive_keys is None else sensitive_keys
        self.sensitive_keys = frozenset(key.lower() for key in keys)

    def is_sensitive(self, key: Any) -> bool:
        return isinstance(key, str) and key.lower() in self.sensitive_keys

    def scrub(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {
                key: REDACTED if self.is_sensitive(key) else self.scrub(item)
                for key, item in value.items()
            }
        if isinstance(value, list):
            return [self.scrub(item) for item in value]
        if isinstance(value, tuple):
            return tuple(self.scrub(item) for item in value)
        return value

    def extra_fields(self, record: LogRecord) -> dict[str, Any]:
        """The record's ``extra`` payload with sensitive entries replaced."""

        fields: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            fields[key] = REDACTED if self.is_sensitive(key) else self.scrub(value)
        return fields


class RequestIdFilter(logging.Filter):
    """Stamp the current request id onto records that lack one."""

    def filter(self, record: LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            current = get_request_id()
            if current:
                record.request_id = current
        return True


class SensitiveDataFilter(logging.Filter):
    """Rewrite sensitive ``extra`` fields in place so every formatter sees them redacted."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)

    def filter(self, record: LogRecord) -> bool:
        for key, value in self.redactor.extra_fields(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: envelope first, then the ``extra`` fields."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = False,
    ) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(self.redactor.extra_fields(record))

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _build_handler(cfg: LogSettings) -> logging.Handler:
    if cfg.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(cfg.file_path or "logs/app.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cfg.max_bytes:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path, maxBytes=cfg.max_bytes, backupCount=cfg.backup_count, encoding="utf-8"
    )


def configure_logging(log_settings: LogSettings | None = None) -> logging.Handler:
    """Install a single redacting handler on the root logger.

    Args:
        log_settings: Log configuration; the process-wide settings when omitted.

    Returns:
        The installed handler.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers; stop them echoing through root
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
    return handler
