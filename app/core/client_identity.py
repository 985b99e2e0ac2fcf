"""Best-effort client identification from request headers.

The identifier keys rate limits and cooldowns. It is NOT authenticated:
any client can send its own ``X-Forwarded-For``. Deploy behind a proxy that
overwrites the header if the limits must hold against spoofing.
"""

from __future__ import annotations

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def get_client_identifier(request: Request) -> str:
    """Derive the client identifier for ``request``.

    Priority:
    1. First entry of ``X-Forwarded-For``
    2. ``X-Real-IP``
    3. Connection peer address
    4. ``"unknown"``

    Args:
        request: Incoming request.

    Returns:
        Non-empty identifier string.

    Examples:
        ``X-Forwarded-For: 203.0.113.7, 10.0.0.1`` -> ``"203.0.113.7"``
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT
