"""
Counter Stores
==============
Keyed counter storage shared by the rate limiter and the brute-force guard.

The in-memory store is bounded (LRU) and expires entries, so counters for
clients that went away do not accumulate for the life of the process. Use
RedisCounterStore when several worker processes must share counters.
"""

import time
from typing import Callable, Dict, Optional, Protocol

import structlog
from cachetools import TLRUCache

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 3600.0


class CounterStore(Protocol):
    """Async key -> {field: number} storage with expiry."""

    async def get(self, key: str) -> Optional[Dict[str, float]]:
        ...

    async def set(self, key: str, mapping: Dict[str, float], ttl_seconds: float) -> None:
        ...

    async def increment(self, key: str, field: str, amount: int = 1) -> int:
        ...

    async def delete(self, key: str) -> None:
        ...


class _Entry:
    __slots__ = ("fields", "expires_at")

    def __init__(self, fields: Dict[str, float], expires_at: float):
        self.fields = fields
        self.expires_at = expires_at


def _entry_expiry(key: str, entry: _Entry, now: float) -> float:
    return entry.expires_at


class InMemoryCounterStore:
    """
    Process-local counter store.

    Holds at most ``max_entries`` keys, evicting the least recently used, and
    drops entries once their ttl has passed. Expired entries are also swept
    every ``sweep_interval`` seconds.
    """

    def __init__(
        self,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.time,
        sweep_interval: float = 60.0,
        default_ttl: float = DEFAULT_TTL_SECONDS,
    ):
        self._clock = clock
        self._cache: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_entry_expiry, timer=clock)
        self.sweep_interval = sweep_interval
        self.default_ttl = default_ttl
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._cache)

    def _maybe_sweep(self) -> None:
        now = self._clock()
        if now - self._last_sweep >= self.sweep_interval:
            self.sweep()

    def sweep(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        expired = self._cache.expire()
        self._last_sweep = self._clock()
        if expired:
            logger.debug("counter_store_swept", removed=len(expired), remaining=len(self._cache))
        return len(expired)

    async def get(self, key: str) -> Optional[Dict[str, float]]:
        self._maybe_sweep()
        entry = self._cache.get(key)
        return dict(entry.fields) if entry is not None else None

    async def set(self, key: str, mapping: Dict[str, float], ttl_seconds: float) -> None:
        self._maybe_sweep()
        self._cache[key] = _Entry(dict(mapping), self._clock() + ttl_seconds)

    async def increment(self, key: str, field: str, amount: int = 1) -> int:
        entry = self._cache.get(key)
        if entry is None:
            entry = _Entry({}, self._clock() + self.default_ttl)
            self._cache[key] = entry
        entry.fields[field] = entry.fields.get(field, 0) + amount
        return int(entry.fields[field])

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)


class RedisCounterStore:
    """
    Counter store backed by Redis hashes (``redis.asyncio`` client).

    Shares counters between worker processes; expiry is delegated to Redis.
    """

    def __init__(self, redis_client, prefix: str = "storefront_guard", default_ttl: float = DEFAULT_TTL_SECONDS):
        self.redis = redis_client
        self.prefix = prefix
        self.default_ttl = default_ttl

    @classmethod
    def from_url(cls, redis_url: str, **kwargs) -> "RedisCounterStore":
        from redis import asyncio as aioredis

        return cls(aioredis.from_url(redis_url, decode_responses=True), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Dict[str, float]]:
        raw = await self.redis.hgetall(self._key(key))
        if not raw:
            return None
        return {field: float(value) for field, value in raw.items()}

    async def set(self, key: str, mapping: Dict[str, float], ttl_seconds: float) -> None:
        redis_key = self._key(key)
        pipe = self.redis.pipeline()
        pipe.delete(redis_key)
        pipe.hset(redis_key, mapping=mapping)
        pipe.pexpire(redis_key, max(1, int(ttl_seconds * 1000)))
        await pipe.execute()

    async def increment(self, key: str, field: str, amount: int = 1) -> int:
        redis_key = self._key(key)
        current = await self.redis.hincrby(redis_key, field, amount)
        if current == amount:
            # New key: make sure it cannot live forever
            await self.redis.pexpire(redis_key, int(self.default_ttl * 1000))
        return int(current)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))
