"""
Authentication Module
=====================
User records, bearer-token dependencies and the ``/api/auth`` routes.
"""

# Re-export all public APIs
from .users import UserRecord, UserStore, InMemoryUserStore, create_user, normalize_username
from .dependencies import get_current_user, require_roles, extract_bearer_token
from .router import create_auth_router, LoginRequest, RefreshRequest

__all__ = [
    # Users
    "UserRecord",
    "UserStore",
    "InMemoryUserStore",
    "create_user",
    "normalize_username",
    # Dependencies
    "get_current_user",
    "require_roles",
    "extract_bearer_token",
    # Routes
    "create_auth_router",
    "LoginRequest",
    "RefreshRequest",
]
