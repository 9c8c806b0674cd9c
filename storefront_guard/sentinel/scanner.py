"""
Pattern Sentinel
================
Scans the inbound request surface (path, query, body) against an ordered
list of malicious-request signatures.

Scanning stops at the first match; multiple matches in one request are not
aggregated.
"""

from typing import Iterable, Optional, Sequence
from urllib.parse import unquote_plus

import structlog

from ..audit import RequestInfo, SecurityAuditLogger
from ..metrics import record_sentinel_match
from .models import ALLOW, ScanResult, Severity, Signature, Surface, Verdict
from .signatures import DEFAULT_SIGNATURES

logger = structlog.get_logger(__name__)


class PatternSentinel:
    """Decides allow / log / block for a request."""

    def __init__(
        self,
        signatures: Optional[Sequence[Signature]] = None,
        block_signatures: Optional[Iterable[str]] = None,
        audit: Optional[SecurityAuditLogger] = None,
    ):
        """
        Args:
            signatures: Ordered signatures (defaults to DEFAULT_SIGNATURES)
            block_signatures: Names that block; overrides each signature's severity
            audit: Receives an event for every flagged request
        """
        self.signatures = tuple(signatures) if signatures is not None else DEFAULT_SIGNATURES
        self.block_signatures = frozenset(block_signatures) if block_signatures is not None else None
        self.audit = audit

        if self.block_signatures is not None:
            known = {s.name for s in self.signatures}
            unknown = self.block_signatures - known
            if unknown:
                logger.warning("unknown_block_signatures", names=sorted(unknown))

    def severity_of(self, signature: Signature) -> Severity:
        if self.block_signatures is None:
            return signature.severity
        return Severity.HIGH if signature.name in self.block_signatures else Severity.LOW

    def scan(
        self,
        path: str,
        query_string: str = "",
        serialized_body: str = "",
        request: Optional[RequestInfo] = None,
    ) -> ScanResult:
        """
        Scan a request.

        Args:
            path: Request path
            query_string: Raw query string (URL-decoded before matching)
            serialized_body: Request body as text
            request: Request context for the audit event

        Returns:
            ScanResult with the verdict and, when flagged, the signature name
            and the surface it matched
        """
        surfaces = {
            Surface.PATH: (path or "").lower(),
            Surface.QUERY: unquote_plus(query_string or ""),
            Surface.BODY: (serialized_body or "").lower(),
        }

        for signature in self.signatures:
            for surface in signature.surfaces:
                if signature.matches(surfaces[surface]):
                    return self._flag(signature, surface, path, request)

        return ALLOW

    def _flag(
        self,
        signature: Signature,
        surface: Surface,
        path: str,
        request: Optional[RequestInfo],
    ) -> ScanResult:
        verdict = Verdict.BLOCK if self.severity_of(signature) == Severity.HIGH else Verdict.LOG
        record_sentinel_match(signature.name, verdict.value)

        logger.warning(
            "suspicious_pattern_detected",
            signature=signature.name,
            surface=surface.value,
            verdict=verdict.value,
            path=path,
        )
        if self.audit is not None:
            self.audit.log(
                signature.event_type,
                "Suspicious pattern detected in request",
                {
                    "signature": signature.name,
                    "surface": surface.value,
                    "path": path,
                    "blocked": verdict == Verdict.BLOCK,
                },
                request,
            )

        return ScanResult(verdict=verdict, signature=signature.name, surface=surface)
