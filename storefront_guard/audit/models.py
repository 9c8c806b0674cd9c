"""
Security Event Models
=====================
Immutable records appended to the security audit trail.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .event_types import SecurityEventType


@dataclass(frozen=True)
class RequestInfo:
    """Request context attached to a security event."""
    method: str
    path: str
    ip: str
    user_agent: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class SecurityEvent:
    """A security audit entry. Write-only: never updated or deleted."""
    type: SecurityEventType
    timestamp: datetime
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    request: Optional[RequestInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        d = asdict(self)
        d["type"] = self.type.value
        d["timestamp"] = self.timestamp.isoformat()
        if self.request is None:
            d.pop("request")
        return d
