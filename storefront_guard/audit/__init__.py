"""
Security Audit Module
=====================
Append-only security event trail with pluggable sinks.
"""

# Re-export all public APIs
from .event_types import SecurityEventType
from .models import SecurityEvent, RequestInfo
from .masking import mask_sensitive_data, MASK, SENSITIVE_FIELDS
from .sinks import (
    AuditSink,
    StructlogAuditSink,
    JsonlFileAuditSink,
    InMemoryAuditSink,
    HttpAuditSink,
)
from .logger import SecurityAuditLogger

__all__ = [
    # Event Types
    "SecurityEventType",
    # Models
    "SecurityEvent",
    "RequestInfo",
    # Masking
    "mask_sensitive_data",
    "MASK",
    "SENSITIVE_FIELDS",
    # Sinks
    "AuditSink",
    "StructlogAuditSink",
    "JsonlFileAuditSink",
    "InMemoryAuditSink",
    "HttpAuditSink",
    # Logger
    "SecurityAuditLogger",
]
