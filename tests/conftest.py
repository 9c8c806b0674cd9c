"""
Shared fixtures for storefront_guard tests.
"""

import pytest

from storefront_guard.audit import InMemoryAuditSink, SecurityAuditLogger
from storefront_guard.rate_limit import InMemoryCounterStore


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit(audit_sink):
    return SecurityAuditLogger(sinks=[audit_sink])


@pytest.fixture
def store(clock):
    return InMemoryCounterStore(clock=clock)
