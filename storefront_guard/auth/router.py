"""
Auth Routes
===========
Login, token refresh, CSRF token issue and the current-user endpoint.

Mounted under ``/api/auth``. Error bodies use ``{"message": ...}`` to match
what the storefront frontend already reads.
"""

import asyncio
from functools import partial
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from ..audit import RequestInfo, SecurityEventType
from ..errors import TokenError
from ..metrics import record_login
from ..password import hash_password, needs_rehash, verify_stored_password
from .dependencies import get_components, get_current_user
from .users import UserStore

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
MISSING_CREDENTIALS = "Username and password are required"


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(BaseModel):
    refreshToken: Optional[str] = None


BodyT = TypeVar("BodyT", bound=BaseModel)


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _read_body(request: Request, model: Type[BodyT]) -> BodyT:
    """Parse a JSON body leniently; missing or malformed bodies become an empty model."""
    try:
        data = await request.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        return model()
    try:
        return model.model_validate(data)
    except ValidationError:
        return model()


def _client(request: Request) -> Tuple[Optional[str], RequestInfo]:
    ctx = getattr(request.state, "security", None)
    if ctx is not None:
        return ctx.client_ip, ctx.request_info()
    ip = request.client.host if request.client else None
    return ip, RequestInfo(method=request.method, path=request.url.path, ip=ip or "unknown")


def _user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def _issue_tokens(components, username: str, role: str) -> Dict[str, str]:
    return {
        "token": components.access_tokens.issue({"sub": username, "username": username, "role": role}),
        "refreshToken": components.refresh_tokens.issue({"sub": username, "type": "refresh"}),
    }


def create_auth_router() -> APIRouter:
    """Build the ``/api/auth`` router."""
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/login")
    async def login(request: Request):
        body = await _read_body(request, LoginRequest)
        components = get_components(request)
        store = _user_store(request)
        client_ip, info = _client(request)

        if not body.username or not body.password:
            return _message(400, MISSING_CREDENTIALS)

        user = await store.find_by_username(body.username)
        valid = False
        if user is not None:
            loop = asyncio.get_running_loop()
            valid = await loop.run_in_executor(
                None,
                partial(
                    verify_stored_password,
                    body.password,
                    user.password_hash,
                    user.salt,
                    components.password_iterations,
                ),
            )

        if not valid:
            reason = "unknown_user" if user is None else "bad_password"
            logger.info("login_failed", username=body.username, reason=reason, ip=client_ip)
            components.audit.log(
                SecurityEventType.AUTHENTICATION_FAILURE,
                "Login failed",
                {"username": body.username, "reason": reason},
                info,
            )
            if not components.guard.count_successful_attempts:
                await components.guard.record_failure(client_ip)
            record_login("failure")
            return _message(401, INVALID_CREDENTIALS)

        if needs_rehash(user.password_hash, user.salt):
            upgraded = await hash_password(body.password, components.password_iterations)
            user.password_hash, user.salt = upgraded.hash, upgraded.salt
            logger.info("password_rehashed", username=user.username)

        user.last_login = components.clock()
        user.last_ip = client_ip
        await store.save(user)

        if not components.guard.count_successful_attempts:
            await components.guard.reset(client_ip)

        record_login("success")
        components.audit.log(
            SecurityEventType.AUTHENTICATION_SUCCESS,
            "Login succeeded",
            {"username": user.username, "role": user.role},
            info,
        )
        return {
            **_issue_tokens(components, user.username, user.role),
            "username": user.username,
            "role": user.role,
        }

    @router.post("/refresh")
    async def refresh(request: Request):
        body = await _read_body(request, RefreshRequest)
        components = get_components(request)
        if not body.refreshToken:
            return _message(400, "Refresh token is required")

        try:
            claims = components.refresh_tokens.verify(body.refreshToken)
        except TokenError as e:
            logger.info("refresh_rejected", error_type=type(e).__name__)
            return _message(401, "Invalid refresh token")

        user = await _user_store(request).find_by_username(str(claims.get("sub", "")))
        if user is None:
            return _message(401, "Invalid refresh token")

        token = components.access_tokens.issue(
            {"sub": user.username, "username": user.username, "role": user.role}
        )
        return {"token": token}

    @router.get("/csrf-token")
    async def csrf_token(request: Request):
        protector = get_components(request).csrf
        token = protector.issue_token()
        response = JSONResponse({"csrfToken": token})
        protector.set_cookie(response, token)
        return response

    @router.get("/me")
    async def me(user: Dict[str, Any] = Depends(get_current_user)):
        return user

    return router
