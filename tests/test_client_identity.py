"""Tests for best-effort client identification."""

from __future__ import annotations

from starlette.requests import Request

from app.core.client_identity import UNKNOWN_CLIENT, get_client_identifier


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("10.1.1.1", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/propose-question",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_first_forwarded_for_entry_wins() -> None:
    request = _request({"X-Forwarded-For": " 203.0.113.7 , 10.0.0.1", "X-Real-IP": "198.51.100.9"})

    assert get_client_identifier(request) == "203.0.113.7"


def test_blank_forwarded_for_falls_back_to_real_ip() -> None:
    request = _request({"X-Forwarded-For": " , 10.0.0.1", "X-Real-IP": "198.51.100.9"})

    assert get_client_identifier(request) == "198.51.100.9"


def test_peer_address_used_without_proxy_headers() -> None:
    assert get_client_identifier(_request()) == "10.1.1.1"


def test_sentinel_when_nothing_is_known() -> None:
    assert get_client_identifier(_request(client=None)) == UNKNOWN_CLIENT
