"""
Auth Dependencies
=================
FastAPI dependencies for bearer-token authentication and role checks.

Usage:
    from storefront_guard.auth import get_current_user, require_roles

    @router.delete("/products/{product_id}")
    async def delete_product(product_id: str, user=Depends(require_roles("admin"))):
        ...
"""

from typing import TYPE_CHECKING, Any, Dict

import structlog
from fastapi import Depends, Request

from ..errors import AuthenticationRequired, PermissionDenied

if TYPE_CHECKING:
    from ..app import SecurityComponents

logger = structlog.get_logger(__name__)


def get_components(request: Request) -> "SecurityComponents":
    return request.app.state.security


def extract_bearer_token(authorization: str) -> str:
    """
    Pull the token out of an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationRequired: Header missing or not a bearer token
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationRequired("Missing bearer token")
    return token.strip()


async def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Verify the request's access token and return its claims.

    Raises:
        AuthenticationRequired: No bearer token
        TokenError: Token malformed, forged, expired or not yet valid
    """
    token = extract_bearer_token(request.headers.get("authorization", ""))
    claims = get_components(request).access_tokens.verify(token)

    ctx = getattr(request.state, "security", None)
    if ctx is not None:
        ctx.user_id = claims.get("sub")
    return claims


def require_roles(*roles: str):
    """Build a dependency that only admits users holding one of ``roles``."""
    allowed = frozenset(roles)

    async def dependency(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in allowed:
            logger.warning("role_denied", user=user.get("sub"), role=user.get("role"), required=sorted(allowed))
            raise PermissionDenied("Role not allowed", role=user.get("role"))
        return user

    return dependency
