"""
Authentication endpoints.

POST /api/v1/auth/register - Create an account with its own free organization
POST /api/v1/auth/login    - Email/password login
POST /api/v1/auth/logout   - Revoke the current session
GET  /api/v1/auth/me       - Current user and memberships
"""

from __future__ import annotations

import jwt
import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    get_current_user,
    remaining_ttl,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.redis import revoke_jti
from app.models.user import User
from app.services import users as user_service
from quizory_shared.schemas.common import Role
from quizory_shared.schemas.users import AuthResponse, LoginRequest, MeResponse, RegisterRequest

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    response.set_cookie(key=CSRF_COOKIE, value=csrf, **{**COOKIE_KWARGS, "httponly": False})


def _issue_session(response: Response, user: User, org_id, role: str) -> AuthResponse:
    token, _jti = create_jwt(user.id, user.preferred_language)
    _set_session_cookies(response, token, generate_csrf_token())
    return AuthResponse(
        token=token,
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        preferred_language=user.preferred_language,
        organization_id=org_id,
        role=Role(role),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a user; they become the owner of a new free organization."""
    user, org, membership = await user_service.register(body, session)
    return _issue_session(response, user, org.id, membership.role)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    user, membership = await user_service.authenticate(body.email, body.password, session)
    return _issue_session(response, user, membership.org_id, membership.role)


@router.post("/logout", status_code=204)
async def logout(request: Request, response: Response):
    """Invalidate the current session. Works with either the cookie or a Bearer token."""
    token = request.cookies.get(SESSION_COOKIE)
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        token = authorization[7:].strip()

    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = None  # already unusable, only the cookies need clearing
        if payload and payload.get("jti"):
            await revoke_jti(payload["jti"], remaining_ttl(payload))
            log.info("auth.logout", user_id=payload.get("sub"))

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")


@router.get("/me", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await user_service.get_profile(user, session)
