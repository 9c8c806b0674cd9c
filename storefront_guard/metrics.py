"""
Security Metrics
================
Prometheus counters for security decisions.

Exposed on ``GET /metrics`` by the app factory.
"""

import structlog
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest

logger = structlog.get_logger(__name__)

# Custom registry so the app only exposes its own series
SECURITY_REGISTRY = CollectorRegistry()

PIPELINE_REJECTIONS = Counter(
    name="security_pipeline_rejections_total",
    documentation="Requests terminated by a security stage",
    labelnames=["stage", "status"],
    registry=SECURITY_REGISTRY,
)

SENTINEL_MATCHES = Counter(
    name="security_sentinel_matches_total",
    documentation="Requests matching a malicious-pattern signature",
    labelnames=["signature", "verdict"],
    registry=SECURITY_REGISTRY,
)

LOGIN_ATTEMPTS = Counter(
    name="security_login_attempts_total",
    documentation="Login attempts by outcome",
    labelnames=["outcome"],
    registry=SECURITY_REGISTRY,
)

AUDIT_EVENTS = Counter(
    name="security_audit_events_total",
    documentation="Security events written to the audit trail",
    labelnames=["type"],
    registry=SECURITY_REGISTRY,
)


def record_rejection(stage: str, status_code: int) -> None:
    PIPELINE_REJECTIONS.labels(stage=stage, status=str(status_code)).inc()


def record_sentinel_match(signature: str, verdict: str) -> None:
    SENTINEL_MATCHES.labels(signature=signature, verdict=verdict).inc()


def record_login(outcome: str) -> None:
    LOGIN_ATTEMPTS.labels(outcome=outcome).inc()


def record_audit_event(event_type: str) -> None:
    AUDIT_EVENTS.labels(type=event_type).inc()


def get_metrics_text() -> str:
    """Get metrics in Prometheus text format."""
    return generate_latest(SECURITY_REGISTRY).decode("utf-8")


METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST
