"""
Storefront Guard
================
Request-security core for the storefront API.
"""

__version__ = "0.1.0"

# Errors
from storefront_guard.errors import (
    SecurityError,
    TokenError,
    MalformedToken,
    InvalidSignature,
    Expired,
    NotYetValid,
    EnvelopeError,
    InvalidEnvelope,
    AuthenticationFailed,
    RateLimited,
    TooManyAttempts,
    InvalidCSRFToken,
    SuspiciousRequestBlocked,
    AuthenticationRequired,
    PermissionDenied,
)

# Config
from storefront_guard.config import Settings, parse_duration

# Tokens
from storefront_guard.tokens import (
    TokenCodec,
    EnvelopeCipher,
    issue_token,
    verify_token,
    generate_secure_token,
    encrypt_data,
    decrypt_data,
)

# Passwords
from storefront_guard.password import (
    PasswordHasher,
    hash_password,
    verify_password,
    verify_stored_password,
)

# Throttling
from storefront_guard.rate_limit import (
    InMemoryCounterStore,
    RedisCounterStore,
    FixedWindowRateLimiter,
    BruteForceGuard,
    BurstMonitor,
)

# Sentinel
from storefront_guard.sentinel import PatternSentinel, Verdict

# Audit
from storefront_guard.audit import SecurityAuditLogger, SecurityEventType

# Pipeline
from storefront_guard.middleware import (
    SecurityPipeline,
    StageResult,
    RequestContext,
    CSRFProtector,
    build_pipeline,
)

# App
from storefront_guard.app import SecurityComponents, build_security, create_app

__all__ = [
    "__version__",
    # Errors
    "SecurityError",
    "TokenError",
    "MalformedToken",
    "InvalidSignature",
    "Expired",
    "NotYetValid",
    "EnvelopeError",
    "InvalidEnvelope",
    "AuthenticationFailed",
    "RateLimited",
    "TooManyAttempts",
    "InvalidCSRFToken",
    "SuspiciousRequestBlocked",
    "AuthenticationRequired",
    "PermissionDenied",
    # Config
    "Settings",
    "parse_duration",
    # Tokens
    "TokenCodec",
    "EnvelopeCipher",
    "issue_token",
    "verify_token",
    "generate_secure_token",
    "encrypt_data",
    "decrypt_data",
    # Passwords
    "PasswordHasher",
    "hash_password",
    "verify_password",
    "verify_stored_password",
    # Throttling
    "InMemoryCounterStore",
    "RedisCounterStore",
    "FixedWindowRateLimiter",
    "BruteForceGuard",
    "BurstMonitor",
    # Sentinel
    "PatternSentinel",
    "Verdict",
    # Audit
    "SecurityAuditLogger",
    "SecurityEventType",
    # Pipeline
    "SecurityPipeline",
    "StageResult",
    "RequestContext",
    "CSRFProtector",
    "build_pipeline",
    # App
    "SecurityComponents",
    "build_security",
    "create_app",
]
