"""
Security Audit Tests
====================
Masking, the audit logger and its sinks.
"""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from storefront_guard.audit import (
    MASK,
    HttpAuditSink,
    InMemoryAuditSink,
    JsonlFileAuditSink,
    RequestInfo,
    SecurityAuditLogger,
    SecurityEventType,
    StructlogAuditSink,
    mask_sensitive_data,
)

FIXED_TIME = datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)


class FailingSink:
    def write(self, event):
        raise OSError("disk full")


class TestMasking:
    """Tests for sensitive-field masking."""

    def test_masks_nested_fields(self):
        """Sensitive keys should be masked at any depth, case-insensitively."""
        data = {
            "username": "alice",
            "Password": "hunter2",
            "payment": {"cardNumber": "4242424242424242", "cvv": 123, "amount": 10},
            "tokens": [{"refreshToken": "abc"}],
        }

        masked = mask_sensitive_data(data)

        assert masked["username"] == "alice"
        assert masked["Password"] == MASK
        assert masked["payment"]["cardNumber"] == MASK
        assert masked["payment"]["cvv"] == 0
        assert masked["payment"]["amount"] == 10
        assert masked["tokens"] is None
        assert data["Password"] == "hunter2"

    def test_lists_walked(self):
        """Lists of dicts should be masked element-wise."""
        assert mask_sensitive_data([{"apiKey": "k"}, 1]) == [{"apiKey": MASK}, 1]


class TestSecurityAuditLogger:
    """Tests for event recording."""

    def test_log_records_masked_event(self):
        """Should build an event, mask details and write to every sink."""
        first, second = InMemoryAuditSink(), InMemoryAuditSink()
        audit = SecurityAuditLogger(sinks=[first, second], clock=lambda: FIXED_TIME)
        request = RequestInfo(method="POST", path="/api/auth/login", ip="1.2.3.4")

        event = audit.log(
            SecurityEventType.AUTHENTICATION_FAILURE,
            "Login failed",
            {"username": "alice", "password": "wrong"},
            request,
        )

        assert event.timestamp == FIXED_TIME
        assert event.details == {"username": "alice", "password": MASK}
        assert first.events == [event]
        assert second.events == [event]

    def test_to_dict(self):
        """Serialized events should carry the type value and ISO timestamp."""
        audit = SecurityAuditLogger(sinks=[InMemoryAuditSink()], clock=lambda: FIXED_TIME)

        data = audit.log(SecurityEventType.CSRF, "CSRF token validation failed").to_dict()

        assert data["type"] == "CSRF"
        assert data["timestamp"] == FIXED_TIME.isoformat()
        assert "request" not in data

    def test_failing_sink_skipped(self):
        """A sink raising OSError should not stop other sinks."""
        sink = InMemoryAuditSink()
        audit = SecurityAuditLogger(sinks=[FailingSink(), sink])

        audit.log(SecurityEventType.RATE_LIMIT, "Rate limit exceeded")

        assert len(sink.events) == 1

    def test_default_sink_is_structlog(self):
        """Without sinks, events should go to the structured log."""
        audit = SecurityAuditLogger()
        assert len(audit.sinks) == 1
        assert isinstance(audit.sinks[0], StructlogAuditSink)
        audit.log(SecurityEventType.AUTHENTICATION_SUCCESS, "Login succeeded", {"username": "a"})

    def test_in_memory_helpers(self):
        """of_type and clear should filter and reset."""
        sink = InMemoryAuditSink()
        audit = SecurityAuditLogger(sinks=[sink])
        audit.log(SecurityEventType.XSS, "x")
        audit.log(SecurityEventType.CSRF, "c")

        assert [e.message for e in sink.of_type(SecurityEventType.XSS)] == ["x"]
        sink.clear()
        assert sink.events == []


class TestJsonlFileAuditSink:
    """Tests for the daily file sink."""

    def test_appends_json_lines(self, tmp_path):
        """Events should be appended to security-YYYY-MM-DD.log."""
        sink = JsonlFileAuditSink(tmp_path / "logs")
        audit = SecurityAuditLogger(sinks=[sink], clock=lambda: FIXED_TIME)

        audit.log(SecurityEventType.BRUTE_FORCE, "first", {"ip": "1.2.3.4"})
        audit.log(SecurityEventType.RATE_LIMIT, "second")

        path = tmp_path / "logs" / "security-2026-03-14.log"
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["type"] == "BRUTE_FORCE"
        assert json.loads(lines[0])["details"] == {"ip": "1.2.3.4"}
        assert json.loads(lines[1])["message"] == "second"


class TestHttpAuditSink:
    """Tests for the batched collector sink."""

    def _event(self, message="evt"):
        audit = SecurityAuditLogger(sinks=[InMemoryAuditSink()], clock=lambda: FIXED_TIME)
        return audit.log(SecurityEventType.SUSPICIOUS_ACTIVITY, message, {"token": "t"})

    def test_flush_posts_batch(self):
        """Buffered events should be posted as one batch."""
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(202)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = HttpAuditSink("https://collector.test/events", client=client)
        sink.write(self._event("a"))
        sink.write(self._event("b"))
        assert sink.pending == 2

        delivered = asyncio.run(sink.flush())

        assert delivered == 2
        assert sink.pending == 0
        assert [e["message"] for e in received[0]["events"]] == ["a", "b"]
        assert received[0]["events"][0]["details"]["token"] == MASK

    def test_collector_down_keeps_events(self):
        """Transport errors should keep events buffered for the next flush."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = HttpAuditSink("https://collector.test/events", client=client)
        sink.write(self._event())

        assert asyncio.run(sink.flush()) == 0
        assert sink.pending == 1

    def test_error_status_keeps_events(self):
        """5xx responses count as undelivered."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        sink = HttpAuditSink("https://collector.test/events", client=client)
        sink.write(self._event())

        assert asyncio.run(sink.flush()) == 0
        assert sink.pending == 1

    def test_buffer_bounded(self):
        """The oldest events should be dropped beyond max_buffer."""
        sink = HttpAuditSink("https://collector.test/events", max_buffer=2)
        for message in ("a", "b", "c"):
            sink.write(self._event(message))
        assert sink.pending == 2

    @pytest.mark.asyncio
    async def test_write_schedules_flush(self):
        """Inside an event loop, writing should trigger a background flush."""
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(request)
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = HttpAuditSink("https://collector.test/events", client=client)
        sink.write(self._event())

        for _ in range(100):
            if sink.pending == 0:
                break
            await asyncio.sleep(0.01)

        assert sink.pending == 0
        assert len(received) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_events_written_during_post_not_lost(self):
        """Events arriving while a batch is in flight should be sent next, even with a full buffer."""
        received = []
        sink = None

        def handler(request: httpx.Request) -> httpx.Response:
            received.append([e["message"] for e in json.loads(request.content)["events"]])
            if len(received) == 1:
                sink.write(self._event("d"))
                sink.write(self._event("e"))
            return httpx.Response(202)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = HttpAuditSink("https://collector.test/events", client=client, max_buffer=3)
        for message in ("a", "b", "c"):
            sink.write(self._event(message))

        for _ in range(100):
            if received:
                break
            await asyncio.sleep(0.01)
        assert sink.pending == 2

        assert await sink.flush() == 2
        assert received == [["a", "b", "c"], ["d", "e"]]
        assert sink.pending == 0
        await client.aclose()

    def test_failed_batch_requeued_before_newer_events(self):
        """An undelivered batch should be retried ahead of events written later."""
        received = []
        outcomes = [httpx.Response(503), httpx.Response(202)]

        def handler(request: httpx.Request) -> httpx.Response:
            received.append([e["message"] for e in json.loads(request.content)["events"]])
            return outcomes.pop(0)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = HttpAuditSink("https://collector.test/events", client=client)
        sink.write(self._event("a"))
        sink.write(self._event("b"))

        assert asyncio.run(sink.flush()) == 0
        sink.write(self._event("c"))
        assert asyncio.run(sink.flush()) == 3

        assert received == [["a", "b"], ["a", "b", "c"]]
