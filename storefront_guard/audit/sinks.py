"""
Audit Sinks
===========
Destinations for security events: structured log, daily JSONL files, an
external collector over HTTP, and an in-memory list.
"""

import asyncio
import json
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, Optional, Protocol, Union

import httpx
import structlog

from .event_types import SecurityEventType
from .models import SecurityEvent

logger = structlog.get_logger(__name__)

security_logger = structlog.get_logger("storefront_guard.security")


class AuditSink(Protocol):
    """Append-only destination for security events."""

    def write(self, event: SecurityEvent) -> None:
        ...


class StructlogAuditSink:
    """Writes events to the ``storefront_guard.security`` logger."""

    def write(self, event: SecurityEvent) -> None:
        log = security_logger.info if event.type == SecurityEventType.AUTHENTICATION_SUCCESS else security_logger.warning
        log(
            "security_event",
            security_event=event.type.value,
            message=event.message,
            details=event.details,
            request=event.to_dict().get("request"),
        )


class JsonlFileAuditSink:
    """
    Appends events to ``security-YYYY-MM-DD.log`` in a log directory.

    One JSON object per line; files are never rewritten.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, event: SecurityEvent) -> Path:
        return self.directory / f"security-{event.timestamp.date().isoformat()}.log"

    def write(self, event: SecurityEvent) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with self.path_for(event).open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(event.to_dict(), default=str) + "\n")


class InMemoryAuditSink:
    """Keeps events in a list. For tests and diagnostics."""

    def __init__(self):
        self.events: List[SecurityEvent] = []

    def write(self, event: SecurityEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: SecurityEventType) -> List[SecurityEvent]:
        return [e for e in self.events if e.type == event_type]

    def clear(self) -> None:
        self.events.clear()


class HttpAuditSink:
    """
    Ships events to an external collector in batches.

    RESILIENT: requests are never blocked by the collector. Events are
    buffered and posted from a background task; on transport errors they stay
    buffered (oldest dropped beyond ``max_buffer``) until the next flush.
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        max_buffer: int = 1000,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.url = url
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._headers = headers or {}
        self._buffer: Deque[Dict] = deque(maxlen=max_buffer)
        self._flush_task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    def write(self, event: SecurityEvent) -> None:
        if len(self._buffer) == self._buffer.maxlen:
            logger.warning("audit_buffer_full", dropped_event=self._buffer[0].get("type"))
        self._buffer.append(event.to_dict())

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: events wait for an explicit flush()
            return
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = loop.create_task(self.flush())

    async def flush(self) -> int:
        """
        Post all buffered events.

        Returns:
            Number of events delivered
        """
        if not self._buffer:
            return 0

        # Take the batch; events written during the post stay queued
        batch = list(self._buffer)
        self._buffer.clear()
        try:
            response = await self._get_client().post(
                self.url,
                json={"events": batch},
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            self._requeue(batch)
            logger.warning(
                "audit_collector_unavailable",
                url=self.url,
                error=str(e),
                pending=len(self._buffer),
            )
            return 0

        return len(batch)

    def _requeue(self, batch: List[Dict]) -> None:
        """Put an undelivered batch back ahead of newer events, dropping its oldest on overflow."""
        room = self._buffer.maxlen - len(self._buffer)
        if room <= 0:
            logger.warning("audit_batch_dropped", dropped=len(batch))
            return
        if len(batch) > room:
            logger.warning("audit_batch_dropped", dropped=len(batch) - room)
            batch = batch[-room:]
        self._buffer.extendleft(reversed(batch))

    async def aclose(self) -> None:
        await self.flush()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
