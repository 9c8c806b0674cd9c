"""
Security Audit Logger
=====================
Single entry point for recording security events.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog

from ..metrics import record_audit_event
from .event_types import SecurityEventType
from .masking import mask_sensitive_data
from .models import RequestInfo, SecurityEvent
from .sinks import AuditSink, StructlogAuditSink

logger = structlog.get_logger(__name__)


class SecurityAuditLogger:
    """
    Records security events to one or more sinks.

    Kept apart from diagnostic logging so the audit trail can be shipped and
    retained on its own. A failing sink is logged and skipped; auditing never
    fails the request that triggered it.
    """

    def __init__(
        self,
        sinks: Optional[Iterable[AuditSink]] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.sinks: List[AuditSink] = list(sinks) if sinks is not None else [StructlogAuditSink()]
        self._clock = clock

    def add_sink(self, sink: AuditSink) -> None:
        self.sinks.append(sink)

    def log(
        self,
        event_type: SecurityEventType,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        request: Optional[RequestInfo] = None,
    ) -> SecurityEvent:
        """
        Record a security event.

        Args:
            event_type: Type of event
            message: Human-readable description
            details: Additional event data (sensitive fields are masked)
            request: Context of the request that triggered the event

        Returns:
            The recorded SecurityEvent
        """
        event = SecurityEvent(
            type=event_type,
            timestamp=self._clock(),
            message=message,
            details=mask_sensitive_data(details or {}),
            request=request,
        )
        record_audit_event(event_type.value)

        for sink in self.sinks:
            try:
                sink.write(event)
            except OSError as e:
                logger.error(
                    "audit_sink_write_failed",
                    sink=type(sink).__name__,
                    event_type=event_type.value,
                    error=str(e),
                )

        return event
