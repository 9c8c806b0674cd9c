"""
Security Errors
===============
Typed failures raised by the security core and their conversion to HTTP
responses.

CRITICAL: Never expose internal error details to end users. Each error
carries a category-level public message; the exception text stays in logs.
"""

from typing import Optional

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = structlog.get_logger(__name__)


class SecurityError(Exception):
    """Base class for every failure raised by the security core."""
    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, **details):
        self.message = message or self.public_message
        self.details = details
        super().__init__(self.message)


# Token codec

class TokenError(SecurityError):
    status_code = 401
    public_message = "Invalid or expired token"


class MalformedToken(TokenError):
    """Token is not three dot-separated, decodable segments."""


class InvalidSignature(TokenError):
    """Recomputed signature does not match the token's signature."""


class Expired(TokenError):
    """Current time is past the token's expiry."""


class NotYetValid(TokenError):
    """Current time is before the token's not-before time."""


# Encrypted envelopes

class EnvelopeError(SecurityError):
    status_code = 400
    public_message = "Invalid encrypted payload"


class InvalidEnvelope(EnvelopeError):
    """Envelope is not an iv:ciphertext:tag triple."""


class AuthenticationFailed(EnvelopeError):
    """Authentication tag did not verify; the envelope was tampered with."""


# Throttling

class ThrottleError(SecurityError):
    status_code = 429
    public_message = "Too many requests"

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None, **details):
        super().__init__(message, **details)
        self.retry_after = retry_after


class RateLimited(ThrottleError):
    public_message = "Too many requests. Please try again later."


class TooManyAttempts(ThrottleError):
    public_message = "Too many login attempts. Please try again later."


# Request inspection

class InvalidCSRFToken(SecurityError):
    status_code = 403
    public_message = "Invalid CSRF token"


class SuspiciousRequestBlocked(SecurityError):
    status_code = 403
    public_message = "Request blocked for security reasons"


# Authentication / authorization

class AuthenticationRequired(SecurityError):
    status_code = 401
    public_message = "Authentication required"


class PermissionDenied(SecurityError):
    status_code = 403
    public_message = "Access denied"


def error_response(exc: SecurityError) -> JSONResponse:
    """
    Convert a security error into the client-facing JSON response.

    Args:
        exc: The error raised by a security stage or dependency

    Returns:
        JSONResponse with ``{"error": <public message>}``
    """
    content = {"error": exc.public_message}
    headers = {}

    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        content["retryAfter"] = retry_after
        headers["Retry-After"] = str(retry_after)

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def security_error_handler(request: Request, exc: SecurityError) -> JSONResponse:
    logger.info(
        "security_error",
        error_type=type(exc).__name__,
        error=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return error_response(exc)


def register_exception_handlers(app) -> None:
    """Install the SecurityError -> JSON conversion on a FastAPI app."""
    app.add_exception_handler(SecurityError, security_error_handler)
