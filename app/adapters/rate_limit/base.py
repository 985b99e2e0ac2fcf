"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the process-local store can later be swapped for a shared one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RouteQuota:
    """Maximum number of requests allowed per window on a route.

    Attributes:
        limit: Max requests per window.
        window_seconds: Window length in seconds.
    """

    limit: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("limit must be >= 1")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window for the checked route.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters keyed by client and route."""

    @abstractmethod
    def check(self, client_key: str, route_key: str) -> RateLimitResult:
        """Count a request from ``client_key`` on ``route_key``.

        Every call counts toward the window, rejected calls included.

        Args:
            client_key: Best-effort client identifier (e.g. IP address).
            route_key: Route path the request targets.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def quota_for(self, route_key: str) -> RouteQuota:
        """Return the quota that applies to ``route_key``."""
        raise NotImplementedError
