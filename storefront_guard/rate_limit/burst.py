"""
Burst Monitor
=============
Log-only detection of request bursts (scraping, DDoS floods).

State per key: ``{count, started_at}``.
- More than ``threshold`` requests within ``window_ms`` of ``started_at``:
  record a RATE_LIMIT event and start counting again
- Tracking older than ``reset_ms``: start counting again

Never rejects; the FixedWindowRateLimiter does the enforcing.
"""

import time
from typing import Callable, Optional

import structlog

from ..audit import RequestInfo, SecurityAuditLogger, SecurityEventType
from .store import CounterStore

logger = structlog.get_logger(__name__)


class BurstMonitor:
    """Flags clients that send bursts of requests."""

    def __init__(
        self,
        store: CounterStore,
        threshold: int = 30,
        window_ms: int = 10000,
        reset_ms: int = 30000,
        audit: Optional[SecurityAuditLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.store = store
        self.threshold = threshold
        self.window_ms = window_ms
        self.reset_ms = reset_ms
        self.audit = audit
        self._clock = clock

    def get_key(self, identifier: str) -> str:
        return f"burst:{identifier}"

    async def _restart(self, key: str, now_ms: float, count: int) -> None:
        await self.store.set(
            key,
            {"count": count, "started_at": now_ms},
            ttl_seconds=self.reset_ms / 1000,
        )

    async def observe(self, identifier: Optional[str], request: Optional[RequestInfo] = None) -> bool:
        """
        Count a request and report whether it completed a burst.

        Args:
            identifier: Client identity (usually the IP address)
            request: Request context for the audit event

        Returns:
            True when this request pushed the client over the threshold
        """
        if not identifier:
            return False

        now_ms = self._clock() * 1000
        key = self.get_key(identifier)
        record = await self.store.get(key)

        if record is None or now_ms - record["started_at"] > self.reset_ms:
            await self._restart(key, now_ms, 1)
            return False

        count = await self.store.increment(key, "count")
        elapsed_ms = now_ms - record["started_at"]
        if elapsed_ms >= self.window_ms or count <= self.threshold:
            return False

        logger.warning(
            "request_burst_detected",
            key=identifier,
            count=count,
            elapsed_ms=int(elapsed_ms),
        )
        if self.audit is not None:
            self.audit.log(
                SecurityEventType.RATE_LIMIT,
                "Possible DDoS attack or scraping detected",
                {"ip": identifier, "requestCount": count, "timeFrame": f"{int(elapsed_ms)}ms"},
                request,
            )
        await self._restart(key, now_ms, 0)
        return True
