"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Buckets are never evicted; memory grows with the number of distinct
  (client, route) pairs seen since process start.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Mapping

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult, RouteQuota


@dataclass
class _Bucket:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed window anchored at each bucket's first request.

    A bucket is keyed by ``(client_key, route_key)``. The window opens on the
    first request of the bucket and lasts the route's ``window_seconds``; the
    first request after it elapses opens a fresh window with a count of 1.

    Rejected requests still increment the count, so retrying while blocked
    never shortens the wait.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        default_quota: RouteQuota,
        route_quotas: Mapping[str, RouteQuota] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            default_quota: Quota applied to routes without an override.
            route_quotas: Per-route overrides keyed by route path.
            clock: Time source function returning UNIX time in seconds.
        """
        self._default_quota = default_quota
        self._route_quotas = dict(route_quotas or {})
        self._clock = clock
        self._lock = threading.RLock()
        self._buckets: dict[tuple[str, str], _Bucket] = {}

    def quota_for(self, route_key: str) -> RouteQuota:
        return self._route_quotas.get(route_key, self._default_quota)

    def bucket_count(self) -> int:
        """Number of tracked buckets (for diagnostics and tests)."""
        with self._lock:
            return len(self._buckets)

    def check(self, client_key: str, route_key: str) -> RateLimitResult:
        """Count one request and decide whether it may proceed.

        Args:
            client_key: Best-effort client identifier.
            route_key: Route path the request targets.

        Returns:
            RateLimitResult with allowance decision and metadata.
        """
        quota = self.quota_for(route_key)
        now = self._clock()
        key = (client_key, route_key)

        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket(window_start=now, count=1)
                self._buckets[key] = bucket
            elif now - bucket.window_start >= quota.window_seconds:
                bucket.window_start = now
                bucket.count = 1
            else:
                bucket.count += 1

            reset_at = bucket.window_start + quota.window_seconds
            remaining = max(0, quota.limit - bucket.count)

            if bucket.count <= quota.limit:
                return RateLimitResult(
                    allowed=True,
                    limit=quota.limit,
                    remaining=remaining,
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=None,
                )

            retry_after = min(quota.window_seconds, max(0, int(math.ceil(reset_at - now))))
            return RateLimitResult(
                allowed=False,
                limit=quota.limit,
                remaining=0,
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=retry_after,
            )
