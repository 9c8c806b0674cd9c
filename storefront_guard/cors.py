"""
CORS Setup
==========
CORS configuration for the storefront API.
"""

from typing import Iterable, List, Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logger = structlog.get_logger(__name__)

DEFAULT_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
DEFAULT_ALLOW_HEADERS = [
    "Authorization",
    "Content-Type",
    "X-Request-ID",
    "X-CSRF-Token",
    "X-XSRF-Token",
]
DEFAULT_EXPOSE_HEADERS = [
    "X-Request-ID",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "Retry-After",
]


def setup_cors(
    app: FastAPI,
    origins: Iterable[str] = ("*",),
    allow_credentials: bool = True,
    allow_methods: Optional[List[str]] = None,
    allow_headers: Optional[List[str]] = None,
) -> None:
    """
    Configure CORS middleware.

    Args:
        app: FastAPI application instance
        origins: Allowed origins (``CORS_ORIGIN``)
        allow_credentials: Allow cookies/auth headers (the CSRF cookie needs this)
        allow_methods: Allowed HTTP methods (default: standard REST methods)
        allow_headers: Allowed headers (default: auth and CSRF headers)
    """
    origins = [o for o in origins if o]

    if "*" in origins:
        logger.warning("cors_wildcard_origin", origins=origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=allow_methods or DEFAULT_ALLOW_METHODS,
        allow_headers=allow_headers or DEFAULT_ALLOW_HEADERS,
        expose_headers=DEFAULT_EXPOSE_HEADERS,
    )

    logger.info("cors_configured", origins_count=len(origins))
