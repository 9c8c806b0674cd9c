"""
CSRF Protection
===============
Double-submit cookie check.

The token lives in a cookie readable by the frontend; state-changing requests
must echo it in a header. Safe methods and excluded paths are not checked.
"""

import hmac
import secrets
from typing import Any, Dict, Iterable, Mapping, Optional

import structlog
from starlette.responses import Response

from ..audit import SecurityAuditLogger, SecurityEventType
from ..config import DEFAULT_CSRF_EXCLUDED_PATHS
from ..errors import InvalidCSRFToken
from .context import RequestContext

logger = structlog.get_logger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
FALLBACK_HEADERS = ("x-csrf-token", "x-xsrf-token")


class CSRFProtector:
    """Issues CSRF tokens and validates double-submitted ones."""

    def __init__(
        self,
        cookie_name: str = "XSRF-TOKEN",
        header_name: str = "X-CSRF-Token",
        excluded_paths: Iterable[str] = DEFAULT_CSRF_EXCLUDED_PATHS,
        enabled: bool = True,
        secure: bool = False,
        same_site: str = "lax",
        audit: Optional[SecurityAuditLogger] = None,
    ):
        self.cookie_name = cookie_name
        self.header_name = header_name
        self.excluded_paths = tuple(p.rstrip("/") for p in excluded_paths)
        self.enabled = enabled
        self.secure = secure
        self.same_site = same_site
        self.audit = audit

    def is_excluded(self, path: str) -> bool:
        """Excluded paths cover nested routes too."""
        normalized = path.rstrip("/") or "/"
        return any(
            normalized == excluded or normalized.startswith(excluded + "/")
            for excluded in self.excluded_paths
        )

    def requires_check(self, method: str, path: str) -> bool:
        return self.enabled and method.upper() not in SAFE_METHODS and not self.is_excluded(path)

    def token_from_headers(self, headers: Mapping[str, str]) -> Optional[str]:
        """Configured header first, then the conventional names."""
        for name in (self.header_name.lower(), *FALLBACK_HEADERS):
            value = headers.get(name)
            if value:
                return value
        return None

    def validate(self, ctx: RequestContext) -> None:
        """
        Check the double-submitted token for a request.

        Raises:
            InvalidCSRFToken: Header token missing or not equal to the cookie token
        """
        if not self.requires_check(ctx.method, ctx.path):
            return

        cookie_token = ctx.cookies.get(self.cookie_name)
        header_token = self.token_from_headers(ctx.headers)

        if cookie_token and header_token and hmac.compare_digest(
            cookie_token.encode("utf-8"), header_token.encode("utf-8")
        ):
            return

        reason = "missing_token" if not (cookie_token and header_token) else "token_mismatch"
        logger.warning("csrf_validation_failed", path=ctx.path, method=ctx.method, reason=reason)
        if self.audit is not None:
            self.audit.log(
                SecurityEventType.CSRF,
                "CSRF token validation failed",
                {"path": ctx.path, "method": ctx.method, "reason": reason},
                ctx.request_info(),
            )
        raise InvalidCSRFToken(f"CSRF check failed: {reason}")

    def issue_token(self) -> str:
        return secrets.token_urlsafe(32)

    def cookie_options(self) -> Dict[str, Any]:
        # Readable by the frontend, which echoes it back in a header
        return {
            "httponly": False,
            "secure": self.secure,
            "samesite": self.same_site,
            "path": "/",
        }

    def set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(self.cookie_name, token, **self.cookie_options())
