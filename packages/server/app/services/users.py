"""
Account service: registration, credential checks and the user profile.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password, verify_password
from app.core.errors import AuthenticationError, ConflictError, QuizoryError
from app.models.base import as_utc
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.user import User
from quizory_shared.schemas.common import Role, SubscriptionPlan
from quizory_shared.schemas.users import (
    MembershipSummary,
    MeResponse,
    RegisterRequest,
)

log = structlog.get_logger()

MIN_PASSWORD_LENGTH = 8
DEFAULT_ORG_NAME = "My Organization"


class PasswordTooShort(QuizoryError):
    status_code = 400
    default_code = "password_too_short"


async def register(
    req: RegisterRequest, session: AsyncSession
) -> tuple[User, Organization, Membership]:
    """Create a user, a free organization and the owner membership."""
    email = req.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("email_already_exists")

    if len(req.password) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShort(min_length=MIN_PASSWORD_LENGTH)

    user = User(
        email=email,
        display_name=req.display_name or email,
        password_hash=hash_password(req.password),
        preferred_language=req.preferred_language.value,
    )
    org = Organization(
        name=req.organization_name or DEFAULT_ORG_NAME,
        subscription_plan=SubscriptionPlan.FREE.value,
        trial_ends_at=None,
    )
    session.add(user)
    session.add(org)
    await session.flush()

    membership = Membership(user_id=user.id, org_id=org.id, role=Role.OWNER.value)
    session.add(membership)
    await session.flush()

    log.info("user.registered", user_id=str(user.id), org_id=str(org.id))
    return user, org, membership


async def authenticate(
    email: str, password: str, session: AsyncSession
) -> tuple[User, Membership]:
    """Check credentials and pick the membership to log into (owned org first)."""
    result = await session.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("invalid_credentials")
    if not user.password_hash:
        raise AuthenticationError("account_pending_invite")
    if not verify_password(password, user.password_hash):
        log.warning("auth.login_failure", user_id=str(user.id), reason="bad_password")
        raise AuthenticationError("invalid_credentials")

    result = await session.execute(select(Membership).where(Membership.user_id == user.id))
    memberships = sorted(
        result.scalars().all(), key=lambda m: 0 if m.role == Role.OWNER.value else 1
    )
    if not memberships:
        raise AuthenticationError("no_organization")

    log.info("auth.login_success", user_id=str(user.id))
    return user, memberships[0]


async def get_profile(user: User, session: AsyncSession) -> MeResponse:
    result = await session.execute(
        select(Membership, Organization)
        .join(Organization, Organization.id == Membership.org_id)
        .where(Membership.user_id == user.id)
    )
    return MeResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        preferred_language=user.preferred_language,
        created_at=as_utc(user.created_at),
        memberships=[
            MembershipSummary(org_id=org.id, org_name=org.name, role=Role(membership.role))
            for membership, org in result.all()
        ],
    )
