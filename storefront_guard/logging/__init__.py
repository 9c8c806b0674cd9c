"""
Logging Module
==============
Structured logging setup and access logging.
"""

from .setup import setup_logging
from .middleware import RequestLoggingMiddleware, REQUEST_ID_HEADER

__all__ = [
    "setup_logging",
    "RequestLoggingMiddleware",
    "REQUEST_ID_HEADER",
]
