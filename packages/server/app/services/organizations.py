"""
Organization service: org details, membership management, the admin cap and
quiz defaults.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import RequestContext, ensure_at_least
from app.core.errors import AuthorizationError, ConflictError, NotFoundError, PolicyViolation
from app.models.base import as_utc
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.settings import OrgSettings
from app.models.user import User
from app.services import audit, subscriptions
from quizory_shared.schemas.common import Feature, Language, ROLE_RANK, Role
from quizory_shared.schemas.organizations import (
    MemberInviteRequest,
    MemberResponse,
    OrgSettingsUpdate,
    OrgUpdateRequest,
)

log = structlog.get_logger()

MAX_ADMIN_LEVEL_MEMBERS = 3
ADMIN_LEVEL_ROLES = (Role.OWNER.value, Role.ADMIN.value)


def _member_response(user: User, membership: Membership) -> MemberResponse:
    return MemberResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=Role(membership.role),
        created_at=as_utc(membership.created_at),
    )


async def get_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    return await subscriptions.get_org(session, org_id)


async def list_members(
    org_id: uuid.UUID, session: AsyncSession
) -> list[MemberResponse]:
    """All members, highest role first."""
    result = await session.execute(
        select(User, Membership)
        .join(Membership, Membership.user_id == User.id)
        .where(Membership.org_id == org_id)
    )
    members = [_member_response(user, membership) for user, membership in result.all()]
    members.sort(key=lambda m: (-ROLE_RANK[m.role], m.created_at))
    return members


async def update_org(
    ctx: RequestContext,
    req: OrgUpdateRequest,
    session: AsyncSession,
) -> Organization:
    if ctx.role != Role.OWNER:
        raise AuthorizationError("owner_only")

    org = await get_org(ctx.org_id, session)
    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(org, field, value)

    org.updated_at = datetime.now(timezone.utc)
    session.add(org)
    await session.flush()
    await audit.record(session, ctx, "organization.updated", "organization", org.id, changes)

    log.info("org.updated", org_id=str(org.id), fields=sorted(changes))
    return org


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

async def count_admin_level(org_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Membership)
        .where(Membership.org_id == org_id, Membership.role.in_(ADMIN_LEVEL_ROLES))
    )
    return result.scalar_one()


async def ensure_admin_cap(org_id: uuid.UUID, target_role: Role, session: AsyncSession) -> None:
    """At most three owner/admin memberships per organization."""
    if target_role.value not in ADMIN_LEVEL_ROLES:
        return
    if await count_admin_level(org_id, session) >= MAX_ADMIN_LEVEL_MEMBERS:
        raise PolicyViolation("admin_cap_reached")


async def _get_membership(
    org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> Membership:
    result = await session.execute(
        select(Membership).where(Membership.org_id == org_id, Membership.user_id == user_id)
    )
    membership = result.scalar_one_or_none()
    if not membership:
        raise NotFoundError()
    return membership


async def invite_member(
    ctx: RequestContext,
    req: MemberInviteRequest,
    session: AsyncSession,
) -> MemberResponse:
    """Add a member by email, creating a pending user when the email is new."""
    ensure_at_least(ctx, Role.ADMIN)
    await subscriptions.enforce_feature(ctx, session, Feature.MEMBERS)
    await subscriptions.enforce_member_limit(ctx, session)
    if req.role == Role.OWNER:
        raise ConflictError("cannot_assign_owner")
    await ensure_admin_cap(ctx.org_id, req.role, session)

    email = req.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        existing = await session.execute(
            select(Membership).where(
                Membership.user_id == user.id, Membership.org_id == ctx.org_id
            )
        )
        if existing.scalar_one_or_none():
            raise ConflictError("already_member")
    else:
        # password_hash stays None until the invite is accepted
        user = User(email=email, display_name=req.display_name or email)
        session.add(user)
        await session.flush()

    membership = Membership(user_id=user.id, org_id=ctx.org_id, role=req.role.value)
    session.add(membership)
    await session.flush()
    await audit.record(
        session, ctx, "member.invited", "user", user.id, {"role": req.role.value}
    )

    log.info("member.invited", org_id=str(ctx.org_id), user_id=str(user.id), role=req.role.value)
    return _member_response(user, membership)


async def change_member_role(
    ctx: RequestContext,
    user_id: uuid.UUID,
    new_role: Role,
    session: AsyncSession,
) -> MemberResponse:
    if ctx.role != Role.OWNER:
        raise AuthorizationError("owner_only")

    membership = await _get_membership(ctx.org_id, user_id, session)
    if membership.role == Role.OWNER.value:
        raise ConflictError("cannot_change_owner_role")
    if new_role == Role.OWNER:
        raise ConflictError("cannot_assign_owner")
    if membership.role != new_role.value:
        await ensure_admin_cap(ctx.org_id, new_role, session)

    previous = membership.role
    membership.role = new_role.value
    session.add(membership)
    await session.flush()
    await audit.record(
        session, ctx, "member.role_changed", "user", user_id,
        {"from": previous, "to": new_role.value},
    )

    user = await session.get(User, user_id)
    log.info("member.role_changed", org_id=str(ctx.org_id), user_id=str(user_id), role=new_role.value)
    return _member_response(user, membership)


async def remove_member(
    ctx: RequestContext,
    user_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    ensure_at_least(ctx, Role.ADMIN)

    membership = await _get_membership(ctx.org_id, user_id, session)
    if membership.role == Role.OWNER.value:
        raise ConflictError("cannot_remove_owner")
    if ctx.role == Role.ADMIN and membership.role == Role.ADMIN.value:
        raise AuthorizationError("admin_cannot_remove_admin")

    await session.delete(membership)
    await session.flush()
    await audit.record(session, ctx, "member.removed", "user", user_id)

    log.info("member.removed", org_id=str(ctx.org_id), user_id=str(user_id))


async def set_preferred_language(
    ctx: RequestContext,
    language: Language,
    session: AsyncSession,
) -> User:
    user = await session.get(User, ctx.user_id)
    if not user:
        raise NotFoundError()
    user.preferred_language = language.value
    session.add(user)
    await session.flush()
    return user


# ---------------------------------------------------------------------------
# Quiz defaults
# ---------------------------------------------------------------------------

async def get_settings(org_id: uuid.UUID, session: AsyncSession) -> OrgSettings:
    """The org's quiz defaults, created with stock values on first access."""
    result = await session.execute(select(OrgSettings).where(OrgSettings.org_id == org_id))
    settings = result.scalar_one_or_none()
    if settings is None:
        settings = OrgSettings(org_id=org_id)
        session.add(settings)
        await session.flush()
    return settings


async def update_settings(
    ctx: RequestContext,
    req: OrgSettingsUpdate,
    session: AsyncSession,
) -> OrgSettings:
    ensure_at_least(ctx, Role.ADMIN)

    settings = await get_settings(ctx.org_id, session)
    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(settings, field, value)

    settings.updated_at = datetime.now(timezone.utc)
    session.add(settings)
    await session.flush()
    await audit.record(session, ctx, "settings.updated", "organization", ctx.org_id, changes)
    return settings
