"""
Brute-Force Guard
=================
Per-client attempt counting with a cool-down lockout on sensitive paths
(login, register).

State per key: ``{count, last_attempt_at}``.
- ``count >= max_attempts`` within ``lockout_ms`` of the last attempt: reject
- ``count >= max_attempts`` after the lockout: count restarts from 0
- Otherwise count the attempt and record its time

By default every request to a protected path counts, whether or not the
credentials turn out to be valid. Set ``count_successful_attempts=False`` to
count only failures reported through ``record_failure``.
"""

import math
import time
from typing import Callable, Iterable, Optional

import structlog

from ..audit import RequestInfo, SecurityAuditLogger, SecurityEventType
from .models import AttemptInfo
from .store import CounterStore

logger = structlog.get_logger(__name__)


class BruteForceGuard:
    """Locks out clients that hammer authentication endpoints."""

    def __init__(
        self,
        store: CounterStore,
        max_attempts: int = 5,
        lockout_ms: int = 900000,
        protected_paths: Iterable[str] = ("/auth/login", "/auth/register"),
        count_successful_attempts: bool = True,
        audit: Optional[SecurityAuditLogger] = None,
        clock: Callable[[], float] = time.time,
        grace_ms: int = 60000,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.max_attempts = max_attempts
        self.lockout_ms = lockout_ms
        self.protected_paths = tuple(protected_paths)
        self.count_successful_attempts = count_successful_attempts
        self.audit = audit
        self._clock = clock
        self.grace_ms = grace_ms

    def get_key(self, identifier: str) -> str:
        return f"login_attempts:{identifier}"

    def applies_to(self, path: str) -> bool:
        """Check if a request path is guarded."""
        return any(protected in path for protected in self.protected_paths)

    def _ttl_seconds(self) -> float:
        return (self.lockout_ms + self.grace_ms) / 1000

    def _locked_out(
        self,
        identifier: str,
        record: dict,
        now_ms: float,
        request: Optional[RequestInfo],
    ) -> Optional[AttemptInfo]:
        """Return a rejection if the record is inside an active lockout."""
        count = int(record["count"])
        elapsed = now_ms - record["last_attempt_at"]
        if count < self.max_attempts or elapsed >= self.lockout_ms:
            return None

        retry_after = max(0, math.ceil((self.lockout_ms - elapsed) / 1000))
        logger.warning(
            "brute_force_lockout",
            key=identifier,
            attempts=count,
            retry_after=retry_after,
        )
        if self.audit is not None:
            self.audit.log(
                SecurityEventType.BRUTE_FORCE,
                "Too many login attempts detected",
                {"ip": identifier, "attemptCount": count},
                request,
            )
        return AttemptInfo(
            allowed=False,
            attempts=count,
            max_attempts=self.max_attempts,
            retry_after=retry_after,
        )

    async def _count_attempt(self, key: str, record: Optional[dict], now_ms: float) -> int:
        if record is None:
            count = 1
        else:
            count = int(record["count"])
            if count >= self.max_attempts:
                # Lockout elapsed
                count = 0
            count += 1
        await self.store.set(
            key,
            {"count": count, "last_attempt_at": now_ms},
            ttl_seconds=self._ttl_seconds(),
        )
        return count

    async def check(self, identifier: Optional[str], request: Optional[RequestInfo] = None) -> AttemptInfo:
        """
        Evaluate an attempt from a client.

        Counts the attempt unless only failures are counted.

        Args:
            identifier: Client identity (usually the IP address)
            request: Request context for the audit event

        Returns:
            AttemptInfo with the decision
        """
        if not identifier:
            return AttemptInfo(allowed=True, attempts=0, max_attempts=self.max_attempts)

        now_ms = self._clock() * 1000
        key = self.get_key(identifier)
        record = await self.store.get(key)

        if record is not None:
            rejection = self._locked_out(identifier, record, now_ms, request)
            if rejection is not None:
                return rejection

        if not self.count_successful_attempts:
            attempts = 0 if record is None else int(record["count"])
            return AttemptInfo(allowed=True, attempts=attempts, max_attempts=self.max_attempts)

        count = await self._count_attempt(key, record, now_ms)
        return AttemptInfo(allowed=True, attempts=count, max_attempts=self.max_attempts)

    async def record_failure(self, identifier: Optional[str]) -> int:
        """
        Count a failed attempt (used when only failures are counted).

        Returns:
            Attempt count after this failure
        """
        if not identifier:
            return 0
        key = self.get_key(identifier)
        record = await self.store.get(key)
        return await self._count_attempt(key, record, self._clock() * 1000)

    async def reset(self, identifier: Optional[str]) -> None:
        """Clear the attempt record for a client."""
        if identifier:
            await self.store.delete(self.get_key(identifier))
