"""
Security Middleware
===================
Starlette adapters: runs the security pipeline ahead of route dispatch and
turns unhandled exceptions into generic 500 responses.

Usage:
    from storefront_guard.middleware import SecurityPipelineMiddleware

    app.add_middleware(
        SecurityPipelineMiddleware,
        pipeline=components.pipeline,
        trust_proxy=settings.trust_proxy,
    )
"""

from typing import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .context import RequestContext
from .pipeline import SecurityPipeline

logger = structlog.get_logger(__name__)


class SecurityPipelineMiddleware(BaseHTTPMiddleware):
    """
    Runs every request through the security pipeline.

    The request context is stored on ``request.state.security`` so routes see
    the resolved client IP. Stage headers and cookies are applied to both
    terminal and dispatched responses.
    """

    def __init__(self, app, pipeline: SecurityPipeline, trust_proxy: bool = True):
        super().__init__(app)
        self.pipeline = pipeline
        self.trust_proxy = trust_proxy

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        ctx = await RequestContext.from_request(request, trust_proxy=self.trust_proxy)
        request.state.security = ctx

        response = await self.pipeline.run(ctx)
        if response is not None:
            return response

        response = await call_next(request)
        self.pipeline.apply_response_state(ctx, response)
        return response


class SanitizedErrorMiddleware(BaseHTTPMiddleware):
    """
    Returns a generic 500 for any unhandled exception.

    The exception is logged with its traceback; the client only ever sees
    ``{"error": "Internal server error"}``.
    """

    def __init__(self, app, environment: str = "production"):
        super().__init__(app)
        self.environment = environment

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "unhandled_exception",
                error=str(e),
                error_type=type(e).__name__,
                path=request.url.path,
                method=request.method,
                environment=self.environment,
                exc_info=True,
            )
            return JSONResponse(status_code=500, content={"error": "Internal server error"})
