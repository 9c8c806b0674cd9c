"""
Application Factory
===================
Wires the security core into a FastAPI app.

Usage:
    from storefront_guard.app import create_app

    app = create_app()  # Settings from the environment

Middleware order, outermost first:
    RequestLoggingMiddleware -> SanitizedErrorMiddleware -> CORS
    -> SecurityPipelineMiddleware -> routes
"""

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

import structlog
from fastapi import FastAPI
from fastapi.responses import Response

from . import __version__
from .audit import (
    AuditSink,
    HttpAuditSink,
    JsonlFileAuditSink,
    SecurityAuditLogger,
    StructlogAuditSink,
)
from .auth import InMemoryUserStore, UserStore, create_auth_router
from .config import Settings
from .cors import setup_cors
from .errors import register_exception_handlers
from .logging import RequestLoggingMiddleware, setup_logging
from .metrics import METRICS_CONTENT_TYPE, get_metrics_text
from .middleware import (
    CSRFProtector,
    SanitizedErrorMiddleware,
    SecurityPipeline,
    SecurityPipelineMiddleware,
    build_pipeline,
)
from .rate_limit import (
    BruteForceGuard,
    BurstMonitor,
    CounterStore,
    FixedWindowRateLimiter,
    InMemoryCounterStore,
    RedisCounterStore,
)
from .sentinel import PatternSentinel
from .tokens import EnvelopeCipher, TokenCodec

logger = structlog.get_logger(__name__)


@dataclass
class SecurityComponents:
    """Everything the pipeline and the auth routes share."""
    settings: Settings
    audit: SecurityAuditLogger
    access_tokens: TokenCodec
    refresh_tokens: TokenCodec
    envelope: Optional[EnvelopeCipher]
    store: CounterStore
    limiter: FixedWindowRateLimiter
    guard: BruteForceGuard
    burst_monitor: Optional[BurstMonitor]
    sentinel: PatternSentinel
    csrf: CSRFProtector
    pipeline: SecurityPipeline
    password_iterations: int
    clock: Callable[[], float]


def build_audit_sinks(settings: Settings) -> List[AuditSink]:
    """Structlog always; daily files and the HTTP collector when configured."""
    sinks: List[AuditSink] = [StructlogAuditSink()]
    if settings.audit_log_dir:
        sinks.append(JsonlFileAuditSink(settings.audit_log_dir))
    if settings.audit_http_url:
        sinks.append(HttpAuditSink(settings.audit_http_url))
    return sinks


def build_security(
    settings: Settings,
    store: Optional[CounterStore] = None,
    sinks: Optional[Iterable[AuditSink]] = None,
    clock: Callable[[], float] = time.time,
) -> SecurityComponents:
    """
    Build the security components from settings.

    Args:
        settings: Security settings
        store: Counter store (defaults to Redis when ``redis_url`` is set,
            otherwise in-memory)
        sinks: Audit sinks (defaults to build_audit_sinks)
        clock: Epoch-seconds clock shared by codecs and limiters

    Returns:
        SecurityComponents
    """
    if store is None:
        if settings.redis_url:
            store = RedisCounterStore.from_url(settings.redis_url)
        else:
            store = InMemoryCounterStore(clock=clock)

    audit = SecurityAuditLogger(sinks if sinks is not None else build_audit_sinks(settings))

    limiter = FixedWindowRateLimiter(
        store,
        max_requests=settings.rate_limit.max_requests,
        window_ms=settings.rate_limit.window_ms,
        audit=audit,
        clock=clock,
    )
    guard = BruteForceGuard(
        store,
        max_attempts=settings.brute_force.max_attempts,
        lockout_ms=settings.brute_force.lockout_ms,
        protected_paths=settings.brute_force.protected_paths,
        count_successful_attempts=settings.brute_force.count_successful_attempts,
        audit=audit,
        clock=clock,
    )
    burst_monitor = None
    if settings.burst_monitor.enabled:
        burst_monitor = BurstMonitor(
            store,
            threshold=settings.burst_monitor.threshold,
            window_ms=settings.burst_monitor.window_ms,
            reset_ms=settings.burst_monitor.reset_ms,
            audit=audit,
            clock=clock,
        )
    sentinel = PatternSentinel(block_signatures=settings.sentinel.block_signatures, audit=audit)
    csrf = CSRFProtector(
        cookie_name=settings.csrf.cookie_name,
        header_name=settings.csrf.header_name,
        excluded_paths=settings.csrf.excluded_paths,
        enabled=settings.csrf.enabled,
        secure=settings.csrf.cookie_secure,
        same_site=settings.csrf.same_site,
        audit=audit,
    )
    pipeline = build_pipeline(
        guard,
        limiter,
        sentinel,
        csrf,
        content_security_policy=settings.content_security_policy,
        enable_hsts=settings.is_production,
        burst_monitor=burst_monitor,
    )

    return SecurityComponents(
        settings=settings,
        audit=audit,
        access_tokens=TokenCodec(settings.jwt.secret, settings.jwt.expires_in, clock=clock),
        refresh_tokens=TokenCodec(settings.jwt.refresh_secret, settings.jwt.refresh_expires_in, clock=clock),
        envelope=EnvelopeCipher(settings.encryption_secret) if settings.encryption_secret else None,
        store=store,
        limiter=limiter,
        guard=guard,
        burst_monitor=burst_monitor,
        sentinel=sentinel,
        csrf=csrf,
        pipeline=pipeline,
        password_iterations=settings.password_iterations,
        clock=clock,
    )


def create_app(
    settings: Optional[Settings] = None,
    user_store: Optional[UserStore] = None,
    components: Optional[SecurityComponents] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Create the storefront security app.

    Args:
        settings: Settings (defaults to the components' settings, then the environment)
        user_store: Where login looks users up (defaults to an empty in-memory store)
        components: Prebuilt components (tests inject clocks and sinks this way)
        configure_logging: Configure structlog for the service

    Returns:
        FastAPI app with the security pipeline and auth routes
    """
    if settings is None:
        settings = components.settings if components is not None else Settings.from_env()
    if components is None:
        components = build_security(settings)
    if configure_logging:
        setup_logging(settings.service_name, settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        for sink in components.audit.sinks:
            if isinstance(sink, HttpAuditSink):
                await sink.aclose()

    app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)
    app.state.security = components
    app.state.user_store = user_store if user_store is not None else InMemoryUserStore()

    register_exception_handlers(app)
    app.include_router(create_auth_router())

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return Response(get_metrics_text(), media_type=METRICS_CONTENT_TYPE)

    # Last added runs first
    app.add_middleware(
        SecurityPipelineMiddleware,
        pipeline=components.pipeline,
        trust_proxy=settings.trust_proxy,
    )
    setup_cors(app, settings.cors_origins)
    # Sanitized 500s still reach the access log and the audit trail
    app.add_middleware(SanitizedErrorMiddleware, environment=settings.environment)
    app.add_middleware(RequestLoggingMiddleware, audit=components.audit, trust_proxy=settings.trust_proxy)

    logger.info(
        "security_app_created",
        service=settings.service_name,
        environment=settings.environment,
        stages=components.pipeline.stage_names,
    )
    return app
