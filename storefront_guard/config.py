"""
Security Configuration
======================
Environment-driven settings for the storefront security core.

Variable names and defaults follow the storefront backend's ``.env`` file so
an existing deployment can be pointed at this package unchanged.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple, Union

import structlog

logger = structlog.get_logger(__name__)

DEV_JWT_SECRET = "your_default_jwt_secret_key_change_in_production"
DEV_REFRESH_SECRET = "your_default_refresh_secret_key_change_in_production"

DEFAULT_PROTECTED_PATHS: Tuple[str, ...] = ("/auth/login", "/auth/register")

# Paths that bypass the CSRF check (nested routes included)
DEFAULT_CSRF_EXCLUDED_PATHS: Tuple[str, ...] = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/refresh",
    "/api/cart",
    "/api/products",
    "/api/webhook",
)

PRODUCTION_ENVIRONMENTS = ("production", "prod", "staging")

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: Union[int, float, str]) -> int:
    """
    Parse a duration into whole seconds.

    Accepts plain numbers (seconds) and strings such as ``"30s"``,
    ``"15m"``, ``"12h"`` or ``"1d"``.

    Raises:
        ValueError: If the value is not a recognised duration
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)

    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit.lower()]


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(environ: Mapping[str, str], name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = environ.get(name)
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass
class JWTConfig:
    """Token signing configuration."""
    secret: str = DEV_JWT_SECRET
    expires_in: int = 86400           # Seconds
    refresh_secret: str = DEV_REFRESH_SECRET
    refresh_expires_in: int = 604800  # Seconds


@dataclass
class RateLimitConfig:
    """Fixed-window rate limit configuration."""
    window_ms: int = 900000  # 15 minutes
    max_requests: int = 100


@dataclass
class BruteForceConfig:
    """Login lockout configuration."""
    max_attempts: int = 5
    lockout_ms: int = 15 * 60 * 1000
    protected_paths: Tuple[str, ...] = DEFAULT_PROTECTED_PATHS
    count_successful_attempts: bool = True


@dataclass
class BurstMonitorConfig:
    """Log-only burst detection configuration."""
    enabled: bool = True
    threshold: int = 30      # Requests
    window_ms: int = 10000
    reset_ms: int = 30000


@dataclass
class CSRFConfig:
    """Double-submit CSRF configuration."""
    enabled: bool = True
    cookie_name: str = "XSRF-TOKEN"
    header_name: str = "X-CSRF-Token"
    excluded_paths: Tuple[str, ...] = DEFAULT_CSRF_EXCLUDED_PATHS
    cookie_secure: bool = False
    same_site: str = "lax"


@dataclass
class SentinelConfig:
    """Pattern sentinel configuration."""
    # None keeps the default severity table
    block_signatures: Optional[Tuple[str, ...]] = None


@dataclass
class Settings:
    """Top-level settings for the security core and the app factory.

    ``trust_proxy`` takes the client IP from the first X-Forwarded-For hop.
    Enable it only behind a proxy that sets that header itself; otherwise
    clients choose their own throttling key.
    """
    service_name: str = "storefront-guard"
    environment: str = "development"
    jwt: JWTConfig = field(default_factory=JWTConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    brute_force: BruteForceConfig = field(default_factory=BruteForceConfig)
    burst_monitor: BurstMonitorConfig = field(default_factory=BurstMonitorConfig)
    csrf: CSRFConfig = field(default_factory=CSRFConfig)
    sentinel: SentinelConfig = field(default_factory=SentinelConfig)
    content_security_policy: bool = True
    trust_proxy: bool = True
    cors_origins: Tuple[str, ...] = ("*",)
    password_iterations: int = 10000
    encryption_secret: Optional[str] = None
    log_level: str = "INFO"
    log_json: bool = False
    audit_log_dir: Optional[str] = None
    audit_http_url: Optional[str] = None
    redis_url: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in PRODUCTION_ENVIRONMENTS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Populated Settings
        """
        env = os.environ if environ is None else environ

        environment = env.get("NODE_ENV") or env.get("ENVIRONMENT") or "development"
        is_production = environment.lower() in PRODUCTION_ENVIRONMENTS

        jwt = JWTConfig(
            secret=env.get("JWT_SECRET", DEV_JWT_SECRET),
            expires_in=parse_duration(env.get("JWT_EXPIRES_IN", "1d")),
            refresh_secret=env.get("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET),
            refresh_expires_in=parse_duration(env.get("JWT_REFRESH_EXPIRES_IN", "7d")),
        )

        rate_limit = RateLimitConfig(
            window_ms=int(env.get("RATE_LIMIT_WINDOW_MS", "900000")),
            max_requests=int(env.get("RATE_LIMIT_MAX_REQUESTS", "100")),
        )

        brute_force = BruteForceConfig(
            max_attempts=int(env.get("MAX_LOGIN_ATTEMPTS", "5")),
            # LOGIN_TIMEOUT is expressed in minutes
            lockout_ms=int(env.get("LOGIN_TIMEOUT", "15")) * 60 * 1000,
            protected_paths=_env_list(env, "BRUTE_FORCE_PATHS", DEFAULT_PROTECTED_PATHS),
            count_successful_attempts=_env_bool(env, "BRUTE_FORCE_COUNT_SUCCESSFUL", True),
        )

        burst_monitor = BurstMonitorConfig(
            enabled=_env_bool(env, "BURST_MONITOR_ENABLED", True),
            threshold=int(env.get("BURST_THRESHOLD", "30")),
            window_ms=int(env.get("BURST_WINDOW_MS", "10000")),
        )

        csrf = CSRFConfig(
            enabled=env.get("CSRF_ENABLED", "true").lower() != "false",
            cookie_name=env.get("CSRF_COOKIE_NAME", "XSRF-TOKEN"),
            header_name=env.get("CSRF_HEADER_NAME", "X-CSRF-Token"),
            excluded_paths=_env_list(env, "CSRF_EXCLUDED_PATHS", DEFAULT_CSRF_EXCLUDED_PATHS),
            cookie_secure=is_production,
            same_site="strict" if is_production else "lax",
        )

        block_signatures = env.get("SENTINEL_BLOCK_SIGNATURES")
        sentinel = SentinelConfig(
            block_signatures=(
                _env_list(env, "SENTINEL_BLOCK_SIGNATURES", ())
                if block_signatures else None
            ),
        )

        settings = cls(
            service_name=env.get("SERVICE_NAME", "storefront-guard"),
            environment=environment,
            jwt=jwt,
            rate_limit=rate_limit,
            brute_force=brute_force,
            burst_monitor=burst_monitor,
            csrf=csrf,
            sentinel=sentinel,
            content_security_policy=(
                env.get("CONTENT_SECURITY_POLICY", "true").lower() != "false"
                or is_production
            ),
            trust_proxy=_env_bool(env, "TRUST_PROXY", True),
            cors_origins=_env_list(env, "CORS_ORIGIN", ("*",)),
            password_iterations=int(env.get("PASSWORD_ITERATIONS", "10000")),
            encryption_secret=env.get("ENCRYPTION_SECRET") or None,
            log_level=env.get("LOG_LEVEL", "INFO"),
            log_json=_env_bool(env, "LOG_JSON", is_production),
            audit_log_dir=env.get("LOG_PATH", "logs/"),
            audit_http_url=env.get("AUDIT_COLLECTOR_URL") or None,
            redis_url=env.get("REDIS_URL") or None,
        )
        settings.warn_insecure_defaults()
        return settings

    def warn_insecure_defaults(self) -> None:
        """Log a warning when placeholder secrets are used outside development."""
        if self.environment.lower() == "development":
            return
        if self.jwt.secret == DEV_JWT_SECRET or self.jwt.refresh_secret == DEV_REFRESH_SECRET:
            logger.warning(
                "insecure_default_secret",
                environment=self.environment,
                hint="set JWT_SECRET and JWT_REFRESH_SECRET",
            )
