"""
Security Pipeline Module
========================
Ordered security stages run for every request before route dispatch.
"""

# Re-export all public APIs
from .context import RequestContext, get_client_ip
from .pipeline import SecurityPipeline, Stage, StageOutcome, StageResult
from .headers import (
    ContentSecurityPolicyStage,
    SecureHeadersStage,
    XSSFilterStage,
    DEFAULT_CSP_DIRECTIVES,
    build_csp,
)
from .csrf import CSRFProtector
from .stages import (
    BruteForceStage,
    BurstMonitorStage,
    CSRFStage,
    PatternSentinelStage,
    RateLimitStage,
    build_pipeline,
)
from .asgi import SanitizedErrorMiddleware, SecurityPipelineMiddleware

__all__ = [
    # Context
    "RequestContext",
    "get_client_ip",
    # Pipeline
    "SecurityPipeline",
    "Stage",
    "StageOutcome",
    "StageResult",
    "build_pipeline",
    # Stages
    "SecureHeadersStage",
    "XSSFilterStage",
    "ContentSecurityPolicyStage",
    "BruteForceStage",
    "BurstMonitorStage",
    "RateLimitStage",
    "PatternSentinelStage",
    "CSRFStage",
    "DEFAULT_CSP_DIRECTIVES",
    "build_csp",
    # CSRF
    "CSRFProtector",
    # Middleware
    "SecurityPipelineMiddleware",
    "SanitizedErrorMiddleware",
]
