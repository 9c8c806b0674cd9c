"""
Security Header Stages
======================
Pipeline stages that add security-related HTTP headers to every response.

Headers added:
- X-Frame-Options: Prevents clickjacking
- X-Content-Type-Options: Prevents MIME type sniffing
- Referrer-Policy: Controls referrer information
- Permissions-Policy: Restricts browser features
- Strict-Transport-Security: Forces HTTPS (production only)
- X-XSS-Protection: Legacy XSS protection
- Content-Security-Policy: Restricts resource loading
"""

from typing import Mapping, Optional, Sequence, Tuple

from .context import RequestContext
from .pipeline import StageResult

DEFAULT_CSP_DIRECTIVES: Tuple[Tuple[str, Sequence[str]], ...] = (
    ("default-src", ("'self'",)),
    ("script-src", ("'self'", "'unsafe-inline'", "'unsafe-eval'")),
    ("style-src", ("'self'", "'unsafe-inline'", "https://fonts.googleapis.com")),
    ("img-src", ("'self'", "data:", "blob:")),
    ("font-src", ("'self'", "https://fonts.gstatic.com")),
    ("connect-src", ("'self'",)),
    ("media-src", ("'self'",)),
    ("object-src", ("'none'",)),
    ("frame-src", ("'self'",)),
    ("upgrade-insecure-requests", ()),
)


def build_csp(directives: Sequence[Tuple[str, Sequence[str]]] = DEFAULT_CSP_DIRECTIVES) -> str:
    """Render CSP directives as a header value."""
    return "; ".join(
        " ".join((name, *sources)) if sources else name
        for name, sources in directives
    )


class SecureHeadersStage:
    """Clickjacking, sniffing, referrer and browser-feature headers."""
    name = "secure_headers"

    def __init__(
        self,
        frame_options: str = "DENY",
        referrer_policy: str = "strict-origin-when-cross-origin",
        permissions_policy: str = "camera=(), microphone=(), geolocation=()",
        enable_hsts: bool = False,
        hsts_max_age: int = 31536000,  # 1 year
    ):
        self.headers = {
            "X-Frame-Options": frame_options,
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": referrer_policy,
            "Permissions-Policy": permissions_policy,
        }
        if enable_hsts:
            self.headers["Strict-Transport-Security"] = f"max-age={hsts_max_age}; includeSubDomains"

    async def __call__(self, ctx: RequestContext) -> StageResult:
        ctx.response_headers.update(self.headers)
        return StageResult.proceed()


class XSSFilterStage:
    name = "xss_filter"

    def __init__(self, value: str = "1; mode=block"):
        self.value = value

    async def __call__(self, ctx: RequestContext) -> StageResult:
        ctx.response_headers["X-XSS-Protection"] = self.value
        return StageResult.proceed()


class ContentSecurityPolicyStage:
    """Adds the storefront's Content-Security-Policy unless disabled."""
    name = "content_security_policy"

    def __init__(self, enabled: bool = True, policy: Optional[str] = None):
        self.enabled = enabled
        self.policy = policy or build_csp()

    async def __call__(self, ctx: RequestContext) -> StageResult:
        if self.enabled:
            ctx.response_headers["Content-Security-Policy"] = self.policy
        return StageResult.proceed()


def rate_limit_headers(limit: int, remaining: int, reset_at_ms: int) -> Mapping[str, str]:
    """Standard rate limit headers; reset is epoch seconds."""
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(max(0, remaining)),
        "X-RateLimit-Reset": str(reset_at_ms // 1000),
    }
