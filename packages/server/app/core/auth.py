"""
Authentication and authorization for Quizory.

Supports:
- Email/password credentials hashed with bcrypt
- JWT sessions (Bearer header or session cookie) with a Redis revocation list
- Org-scoped request context resolved from the path and the caller's membership
- Role-rank authorization dependencies
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Header, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import AuthenticationError, AuthorizationError, NotFoundError
from app.core.i18n import resolve_language
from app.core.redis import is_jti_revoked
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.user import User
from quizory_shared.schemas.common import Language, ROLE_RANK, Role

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "qz_session"
CSRF_COOKIE = "qz_csrf"

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    language: str = Language.SR.value,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "lang": language,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def remaining_ttl(payload: dict) -> int:
    """Seconds until the token in ``payload`` expires."""
    exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    return int((exp - datetime.now(timezone.utc)).total_seconds())


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RequestContext:
    """Who is acting, in which organization, with which role and language.

    Passed explicitly into every policy and scoring call.
    """

    user_id: uuid.UUID
    org_id: uuid.UUID
    role: Role
    language: Language = Language.SR

    @property
    def rank(self) -> int:
        return ROLE_RANK[self.role]


def ensure_at_least(ctx: RequestContext, role: Role) -> None:
    """Raise AuthorizationError unless the caller's rank reaches ``role``."""
    if ROLE_RANK[ctx.role] < ROLE_RANK[role]:
        raise AuthorizationError("insufficient_role")


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


async def _decode_session(token: str) -> dict:
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise AuthenticationError("invalid_session")

    jti = payload.get("jti")
    if jti and await is_jti_revoked(jti):
        raise AuthenticationError("session_revoked")
    return payload


async def get_token_payload(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
) -> dict:
    """Verified JWT claims for the current request (not org-scoped)."""
    token = _extract_token(request, authorization)
    if not token:
        raise AuthenticationError()
    return await _decode_session(token)


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    session: AsyncSession = Depends(get_session),
) -> User:
    user = await session.get(User, uuid.UUID(payload["sub"]))
    if not user:
        raise AuthenticationError("invalid_session")
    return user


async def get_request_context(
    orgId: uuid.UUID,
    payload: dict = Depends(get_token_payload),
    accept_language: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session),
) -> RequestContext:
    """Main org-scoped dependency: resolves the caller's membership in ``orgId``."""
    user_id = uuid.UUID(payload["sub"])

    org = await session.get(Organization, orgId)
    if not org:
        raise NotFoundError("organization_not_found")

    # Non-members must not learn whether the org exists
    result = await session.execute(
        select(Membership).where(Membership.user_id == user_id, Membership.org_id == orgId)
    )
    membership = result.scalar_one_or_none()
    if not membership:
        raise NotFoundError("organization_not_found")

    ctx = RequestContext(
        user_id=user_id,
        org_id=orgId,
        role=Role(membership.role),
        language=resolve_language(accept_language, payload.get("lang")),
    )
    structlog.contextvars.bind_contextvars(org_id=str(orgId), user_id=str(user_id))
    return ctx


# ---------------------------------------------------------------------------
# Authorization dependencies (role checks)
# ---------------------------------------------------------------------------

async def require_user(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Any org member can access this endpoint."""
    return ctx


async def require_admin(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Requires admin or owner role."""
    ensure_at_least(ctx, Role.ADMIN)
    return ctx


async def require_owner(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Requires the owner role."""
    if ctx.role != Role.OWNER:
        raise AuthorizationError("owner_only")
    return ctx
