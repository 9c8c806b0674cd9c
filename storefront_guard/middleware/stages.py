"""
Security Stages
===============
Throttling, inspection and CSRF stages, and the standard stage order.
"""

from typing import List, Optional

from ..errors import InvalidCSRFToken, RateLimited, SuspiciousRequestBlocked, TooManyAttempts
from ..rate_limit import BruteForceGuard, BurstMonitor, FixedWindowRateLimiter
from ..sentinel import PatternSentinel
from .context import RequestContext
from .csrf import CSRFProtector
from .headers import (
    ContentSecurityPolicyStage,
    SecureHeadersStage,
    XSSFilterStage,
    rate_limit_headers,
)
from .pipeline import SecurityPipeline, Stage, StageResult


class BruteForceStage:
    """Locks out clients hammering the login endpoints."""
    name = "brute_force"

    def __init__(self, guard: BruteForceGuard):
        self.guard = guard

    async def __call__(self, ctx: RequestContext) -> StageResult:
        if not self.guard.applies_to(ctx.path):
            return StageResult.proceed()

        info = await self.guard.check(ctx.client_ip, ctx.request_info())
        if not info.allowed:
            return StageResult.reject(
                TooManyAttempts("Login locked out", retry_after=info.retry_after, attempts=info.attempts)
            )
        return StageResult.proceed()


class RateLimitStage:
    name = "rate_limit"

    def __init__(self, limiter: FixedWindowRateLimiter):
        self.limiter = limiter

    async def __call__(self, ctx: RequestContext) -> StageResult:
        info = await self.limiter.check(ctx.client_ip, ctx.request_info())
        ctx.response_headers.update(rate_limit_headers(info.limit, info.remaining, info.reset_at))
        if not info.allowed:
            return StageResult.reject(RateLimited("Rate limit exceeded", retry_after=info.retry_after))
        return StageResult.proceed()


class BurstMonitorStage:
    """Records request bursts; never terminates."""
    name = "burst_monitor"

    def __init__(self, monitor: BurstMonitor):
        self.monitor = monitor

    async def __call__(self, ctx: RequestContext) -> StageResult:
        await self.monitor.observe(ctx.client_ip, ctx.request_info())
        return StageResult.proceed()


class PatternSentinelStage:
    """Blocks requests matching a high-severity signature; lower ones are only recorded."""
    name = "pattern_sentinel"

    def __init__(self, sentinel: PatternSentinel):
        self.sentinel = sentinel

    async def __call__(self, ctx: RequestContext) -> StageResult:
        result = self.sentinel.scan(
            ctx.path,
            ctx.query_string,
            ctx.serialized_body,
            ctx.request_info(),
        )
        if result.blocked:
            return StageResult.reject(
                SuspiciousRequestBlocked(
                    f"Matched signature {result.signature}",
                    signature=result.signature,
                    surface=result.surface.value,
                )
            )
        return StageResult.proceed()


class CSRFStage:
    """Validates double-submitted tokens and hands a token to clients without one."""
    name = "csrf"

    def __init__(self, protector: CSRFProtector):
        self.protector = protector

    async def __call__(self, ctx: RequestContext) -> StageResult:
        if not self.protector.enabled:
            return StageResult.proceed()

        try:
            self.protector.validate(ctx)
        except InvalidCSRFToken as e:
            return StageResult.reject(e)

        if self.protector.cookie_name not in ctx.cookies:
            ctx.response_cookies[self.protector.cookie_name] = {
                "value": self.protector.issue_token(),
                **self.protector.cookie_options(),
            }
        return StageResult.proceed()


def build_pipeline(
    guard: BruteForceGuard,
    limiter: FixedWindowRateLimiter,
    sentinel: PatternSentinel,
    csrf: CSRFProtector,
    content_security_policy: bool = True,
    enable_hsts: bool = False,
    burst_monitor: Optional[BurstMonitor] = None,
    extra_stages: Optional[List[Stage]] = None,
) -> SecurityPipeline:
    """
    Assemble the standard stage order.

    Header stages run first so that even rejected requests carry the
    security headers.

    Args:
        guard: Login lockout guard
        limiter: Per-client request limiter
        sentinel: Malicious-pattern scanner
        csrf: Double-submit CSRF protector
        content_security_policy: Add the Content-Security-Policy header
        enable_hsts: Add Strict-Transport-Security (production)
        burst_monitor: Log-only burst detection, run ahead of the rate limit
            so rejected requests still count
        extra_stages: Appended after the standard stages

    Returns:
        SecurityPipeline ready to run
    """
    stages: List[Stage] = [
        SecureHeadersStage(enable_hsts=enable_hsts),
        XSSFilterStage(),
        ContentSecurityPolicyStage(enabled=content_security_policy),
        BruteForceStage(guard),
    ]
    if burst_monitor is not None:
        stages.append(BurstMonitorStage(burst_monitor))
    stages.extend([RateLimitStage(limiter), PatternSentinelStage(sentinel), CSRFStage(csrf)])
    stages.extend(extra_stages or ())
    return SecurityPipeline(stages)
