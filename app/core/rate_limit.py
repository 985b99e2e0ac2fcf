"""Rate limiting middleware for the API routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Injected state: the limiter lives on ``app.state`` (created by the app
  factory, lost on restart) so each app instance, and each test, gets its own.
- Swap-friendly: the store sits behind ``AbstractRateLimiter``.
- Per-route quotas: a generous default for reads, a strict override for the
  write routes.

Rate limiting strategy:
- Fixed window per (client identifier, route path).
- Client identifier comes from forwarding headers, then the peer address.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Request, Response

from app.adapters.rate_limit.base import AbstractRateLimiter, RouteQuota
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.client_identity import get_client_identifier
from app.core.config import AppSettings
from app.core.exception_handlers import too_many_requests_response
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def build_rate_limiter(
    app_settings: AppSettings,
    *,
    clock: Callable[[], float] = time.time,
) -> AbstractRateLimiter:
    """Create a limiter with the default quota and the strict write-route overrides.

    Args:
        app_settings: Application settings.
        clock: Time source returning UNIX time in seconds.

    Returns:
        AbstractRateLimiter: Fresh limiter with no buckets.
    """

    default_quota = RouteQuota(
        limit=app_settings.rate_limit_requests,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    strict_quota = RouteQuota(
        limit=app_settings.rate_limit_strict_requests,
        window_seconds=app_settings.rate_limit_strict_window_seconds,
    )
    return InMemoryFixedWindowRateLimiter(
        default_quota=default_quota,
        route_quotas={path: strict_quota for path in app_settings.rate_limit_strict_paths},
        clock=clock,
    )


def is_rate_limited_path(path: str, app_settings: AppSettings) -> bool:
    """Whether requests to ``path`` go through the limiter.

    Static-asset-like prefixes always bypass it; otherwise only paths under
    the configured prefixes are limited.
    """

    if any(path.startswith(prefix) for prefix in app_settings.rate_limit_skip_prefixes):
        return False
    return any(path.startswith(prefix) for prefix in app_settings.rate_limit_path_prefixes)


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """HTTP middleware enforcing per-client, per-route rate limits.

    Rejected requests get a 429 with ``retryAfter`` in the body and a
    ``Retry-After`` header; the route handler is not called.
    """

    app_settings: AppSettings = request.app.state.settings.app
    path = request.url.path

    if not app_settings.rate_limit_enabled or not is_rate_limited_path(path, app_settings):
        return await call_next(request)

    limiter: AbstractRateLimiter = request.app.state.rate_limiter
    client_key = get_client_identifier(request)
    result = limiter.check(client_key, path)

    headers: dict[str, str] = {}
    if app_settings.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    if not result.allowed:
        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "client_hash": hash_identifier(client_key),
                "route": path,
                "limit": result.limit,
                "window_s": limiter.quota_for(path).window_seconds,
                "retry_after_s": retry_after,
            },
        )
        return too_many_requests_response(retry_after, headers=headers)

    logger.debug(
        "rate_limit.allowed",
        extra={
            "client_hash": hash_identifier(client_key),
            "route": path,
            "limit": result.limit,
            "remaining": result.remaining,
        },
    )
    response = await call_next(request)
    for name, value in headers.items():
        response.headers.setdefault(name, value)
    return response
