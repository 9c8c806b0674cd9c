"""
Sentinel Models
===============
Signatures, severities and scan verdicts.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Pattern, Tuple

from ..audit import SecurityEventType


class Severity(str, Enum):
    """How the sentinel reacts to a signature match."""
    HIGH = "high"  # Block the request
    LOW = "low"    # Record the event, let the request through


class Verdict(str, Enum):
    """Scan decision."""
    ALLOW = "allow"
    LOG = "log"
    BLOCK = "block"


class Surface(str, Enum):
    """Part of the request a signature is matched against."""
    PATH = "path"
    QUERY = "query"
    BODY = "body"


ALL_SURFACES: Tuple[Surface, ...] = (Surface.PATH, Surface.QUERY, Surface.BODY)


@dataclass(frozen=True)
class Signature:
    """A named malicious-request pattern."""
    name: str
    pattern: Pattern[str]
    severity: Severity = Severity.LOW
    event_type: SecurityEventType = SecurityEventType.SUSPICIOUS_ACTIVITY
    surfaces: Tuple[Surface, ...] = ALL_SURFACES

    @classmethod
    def compile(cls, name: str, regex: str, flags: int = re.IGNORECASE, **kwargs) -> "Signature":
        return cls(name=name, pattern=re.compile(regex, flags), **kwargs)

    def matches(self, text: str) -> bool:
        return bool(text) and self.pattern.search(text) is not None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning one request."""
    verdict: Verdict
    signature: Optional[str] = None
    surface: Optional[Surface] = None

    @property
    def blocked(self) -> bool:
        return self.verdict == Verdict.BLOCK

    @property
    def flagged(self) -> bool:
        return self.verdict != Verdict.ALLOW


ALLOW = ScanResult(verdict=Verdict.ALLOW)
