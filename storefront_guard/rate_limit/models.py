"""
Rate Limit Models
=================
Data models for rate limiting and lockout decisions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RateLimitResult(str, Enum):
    """Rate limit decision result."""
    ALLOWED = "allowed"
    BLOCKED = "blocked"


@dataclass
class RateLimitInfo:
    """Rate limit check result with quota information."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: int  # Unix timestamp (ms)
    retry_after: Optional[int] = None  # Seconds until retry allowed

    @property
    def result(self) -> RateLimitResult:
        return RateLimitResult.ALLOWED if self.allowed else RateLimitResult.BLOCKED


@dataclass
class AttemptInfo:
    """Brute-force guard decision for one attempt."""
    allowed: bool
    attempts: int
    max_attempts: int
    retry_after: Optional[int] = None  # Seconds until the lockout ends

    @property
    def locked(self) -> bool:
        return not self.allowed
