"""
Security Metrics Tests
======================
Counters for pipeline rejections, sentinel matches, logins and audit events.
"""

import pytest
from fastapi.testclient import TestClient

from storefront_guard.app import build_security, create_app
from storefront_guard.audit import SecurityEventType
from storefront_guard.auth import InMemoryUserStore, UserRecord
from storefront_guard.config import RateLimitConfig, Settings
from storefront_guard.metrics import SECURITY_REGISTRY
from storefront_guard.password import hash_password_sync
from storefront_guard.sentinel import PatternSentinel


def sample(name, **labels):
    return SECURITY_REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def client(clock, audit_sink):
    record = hash_password_sync("wonderland-42")
    users = InMemoryUserStore([
        UserRecord(username="alice", password_hash=record.hash, salt=record.salt),
    ])
    settings = Settings(rate_limit=RateLimitConfig(max_requests=3, window_ms=60000))
    components = build_security(settings, sinks=[audit_sink], clock=clock)
    return TestClient(create_app(settings, user_store=users, components=components, configure_logging=False))


class TestSecurityMetrics:
    """Tests for the Prometheus counters."""

    def test_sentinel_match_counted(self, audit):
        """A blocked scan should bump the signature counter."""
        before = sample("security_sentinel_matches_total", signature="path_traversal", verdict="block")

        PatternSentinel(audit=audit).scan("/api/files/../../etc/passwd")

        after = sample("security_sentinel_matches_total", signature="path_traversal", verdict="block")
        assert after == before + 1

    def test_audit_events_counted(self, audit):
        """Every logged event should be counted by type."""
        before = sample("security_audit_events_total", type=SecurityEventType.RATE_LIMIT.value)

        audit.log(SecurityEventType.RATE_LIMIT, "Rate limit exceeded")
        audit.log(SecurityEventType.RATE_LIMIT, "Rate limit exceeded")

        after = sample("security_audit_events_total", type=SecurityEventType.RATE_LIMIT.value)
        assert after == before + 2

    def test_rejections_counted_by_stage(self, client):
        """A 429 from the limiter should be counted against its stage."""
        before = sample("security_pipeline_rejections_total", stage="rate_limit", status="429")

        for _ in range(4):
            client.get("/health")

        after = sample("security_pipeline_rejections_total", stage="rate_limit", status="429")
        assert after == before + 1

    def test_login_outcomes_counted(self, client):
        """Login success and failure should be counted separately."""
        failures = sample("security_login_attempts_total", outcome="failure")
        successes = sample("security_login_attempts_total", outcome="success")

        client.post("/api/auth/login", json={"username": "alice", "password": "wrong"})
        client.post("/api/auth/login", json={"username": "alice", "password": "wonderland-42"})

        assert sample("security_login_attempts_total", outcome="failure") == failures + 1
        assert sample("security_login_attempts_total", outcome="success") == successes + 1

    def test_metrics_endpoint(self, client):
        """GET /metrics should serve the Prometheus text format."""
        client.post("/api/auth/login", json={"username": "alice", "password": "wrong"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "security_login_attempts_total" in response.text
