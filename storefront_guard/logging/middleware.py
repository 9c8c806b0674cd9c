"""
Request Logging Middleware
==========================
Access log for every request, plus security events for failed
authentication and server errors.
"""

import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..audit import RequestInfo, SecurityAuditLogger, SecurityEventType
from ..middleware.context import get_client_ip

logger = structlog.get_logger("storefront_guard.access")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one access line per request and binds a request id.

    Responses with status 401/403 record an AUTH_FAILURE event; responses
    with status >= 500 record SUSPICIOUS_ACTIVITY.
    """

    def __init__(self, app, audit: Optional[SecurityAuditLogger] = None, trust_proxy: bool = True):
        super().__init__(app)
        self.audit = audit
        self.trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            # Counted as a 500 even when nothing inside sanitized it
            self._record(request, 500, request_id, start)
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        self._record(request, response.status_code, request_id, start)
        return response

    def _record(self, request: Request, status_code: int, request_id: str, start: float) -> None:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        peer = request.client.host if request.client else None
        client_ip = get_client_ip(request.headers, peer, self.trust_proxy) or "unknown"

        logger.info(
            "http_access",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=duration_ms,
            ip=client_ip,
            user_agent=request.headers.get("user-agent", "unknown"),
        )

        if self.audit is not None and status_code >= 400:
            self._audit_status(request, status_code, client_ip)

    def _audit_status(self, request: Request, status_code: int, client_ip: str) -> None:
        info = RequestInfo(
            method=request.method,
            path=request.url.path,
            ip=client_ip,
            user_agent=request.headers.get("user-agent"),
        )
        details = {"path": request.url.path, "method": request.method}

        if status_code in (401, 403):
            self.audit.log(
                SecurityEventType.AUTH_FAILURE,
                f"Authentication/Authorization failed ({status_code})",
                details,
                info,
            )
        elif status_code >= 500:
            self.audit.log(
                SecurityEventType.SUSPICIOUS_ACTIVITY,
                f"Server error occurred ({status_code})",
                details,
                info,
            )
