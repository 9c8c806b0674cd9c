"""
Fixed Window Rate Limiter
=========================
Per-client request counting in fixed time buckets.

State per key: ``{count, reset_at}``.
- No window yet, or ``now > reset_at``: start a new window with count 1
- Otherwise count the request; more than ``max_requests`` is rejected
"""

import math
import time
from typing import Callable, Optional

import structlog

from ..audit import RequestInfo, SecurityAuditLogger, SecurityEventType
from .models import RateLimitInfo
from .store import CounterStore

logger = structlog.get_logger(__name__)


class FixedWindowRateLimiter:
    """Fixed-window limiter over an injected counter store."""

    def __init__(
        self,
        store: CounterStore,
        max_requests: int = 100,
        window_ms: int = 900000,
        audit: Optional[SecurityAuditLogger] = None,
        clock: Callable[[], float] = time.time,
        grace_ms: int = 60000,
    ):
        """
        Args:
            store: Counter storage (in-memory or Redis)
            max_requests: Requests allowed per window
            window_ms: Window size in milliseconds
            audit: Receives an event for every rejected request
            clock: Returns the current epoch time in seconds
            grace_ms: How long a stale window is kept before it expires
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.store = store
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.audit = audit
        self._clock = clock
        self.grace_ms = grace_ms

    def get_key(self, identifier: str) -> str:
        """Generate a rate limit key."""
        return f"ratelimit:{identifier}"

    async def _start_window(self, key: str, now_ms: float) -> RateLimitInfo:
        reset_at = now_ms + self.window_ms
        await self.store.set(
            key,
            {"count": 1, "reset_at": reset_at},
            ttl_seconds=(self.window_ms + self.grace_ms) / 1000,
        )
        return RateLimitInfo(
            allowed=True,
            remaining=self.max_requests - 1,
            limit=self.max_requests,
            reset_at=int(reset_at),
        )

    async def check(self, identifier: Optional[str], request: Optional[RequestInfo] = None) -> RateLimitInfo:
        """
        Count a request and decide whether it is allowed.

        Args:
            identifier: Client identity (usually the IP address)
            request: Request context for the audit event

        Returns:
            RateLimitInfo with decision and quota
        """
        now_ms = self._clock() * 1000

        if not identifier:
            # Unknown client: nothing to count against
            return RateLimitInfo(
                allowed=True,
                remaining=self.max_requests,
                limit=self.max_requests,
                reset_at=int(now_ms + self.window_ms),
            )

        key = self.get_key(identifier)
        window = await self.store.get(key)

        if window is None or now_ms > window["reset_at"]:
            return await self._start_window(key, now_ms)

        count = await self.store.increment(key, "count")
        reset_at = window["reset_at"]

        if count > self.max_requests:
            retry_after = max(0, math.ceil((reset_at - now_ms) / 1000))
            logger.warning(
                "rate_limit_exceeded",
                key=identifier,
                count=count,
                limit=self.max_requests,
                retry_after=retry_after,
            )
            if self.audit is not None:
                self.audit.log(
                    SecurityEventType.RATE_LIMIT,
                    "Rate limit exceeded",
                    {"ip": identifier, "requestCount": count},
                    request,
                )
            return RateLimitInfo(
                allowed=False,
                remaining=0,
                limit=self.max_requests,
                reset_at=int(reset_at),
                retry_after=retry_after,
            )

        return RateLimitInfo(
            allowed=True,
            remaining=self.max_requests - count,
            limit=self.max_requests,
            reset_at=int(reset_at),
        )

    async def reset(self, identifier: str) -> None:
        await self.store.delete(self.get_key(identifier))
