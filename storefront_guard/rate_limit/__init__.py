"""
Throttling Module
=================
Fixed-window rate limiting, brute-force lockout and burst monitoring over
a pluggable counter store (in-memory or Redis).
"""

# Re-export all public APIs
from .models import RateLimitResult, RateLimitInfo, AttemptInfo
from .store import CounterStore, InMemoryCounterStore, RedisCounterStore
from .fixed_window import FixedWindowRateLimiter
from .brute_force import BruteForceGuard
from .burst import BurstMonitor

__all__ = [
    # Models
    "RateLimitResult",
    "RateLimitInfo",
    "AttemptInfo",
    # Stores
    "CounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    # Limiters
    "FixedWindowRateLimiter",
    "BruteForceGuard",
    "BurstMonitor",
]
