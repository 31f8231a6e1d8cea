"""
Subscription policy: effective plan, plan transitions and feature gates.

The stored plan may lag behind reality: an organization whose trial has
expired still reads ``trial`` until the daily sweep (``expire_trials``) flips
it. Every decision here is made on the *effective* plan, which already
treats such an organization as free.

All ``enforce_*`` helpers are advisory checks run before a write; two
concurrent requests can both pass a limit before either commits.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import RequestContext
from app.core.errors import AuthorizationError, NotFoundError, PolicyViolation
from app.models.base import as_utc
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.quiz import Quiz
from app.services import audit
from quizory_shared.schemas.common import Feature, Role, SubscriptionPlan
from quizory_shared.schemas.organizations import SubscriptionFeatures, SubscriptionResponse

log = structlog.get_logger()

FREE_QUIZZES_PER_MONTH = 5
FREE_MEMBER_LIMIT = 1  # owner only
TRIAL_DAYS = 14
PREMIUM_MEMBER_LIMIT = 1000  # display value, not enforced
TRIAL_REMINDER_DAYS = 5

GATED_FEATURES: frozenset[str] = frozenset(feature.value for feature in Feature)


# ---------------------------------------------------------------------------
# Derived state
# ---------------------------------------------------------------------------

def effective_plan(org: Organization, now: Optional[datetime] = None) -> SubscriptionPlan:
    """The plan in force right now; an expired trial counts as free."""
    now = now or datetime.now(timezone.utc)
    plan = SubscriptionPlan(org.subscription_plan)
    trial_ends_at = as_utc(org.trial_ends_at)
    if plan == SubscriptionPlan.TRIAL and trial_ends_at is not None and trial_ends_at < now:
        return SubscriptionPlan.FREE
    return plan


def start_of_month(now: datetime) -> datetime:
    now = now.astimezone(timezone.utc)
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)


def plan_limits(plan: SubscriptionPlan) -> tuple[Optional[int], int, SubscriptionFeatures]:
    """(monthly quiz limit or None for unlimited, member limit, feature flags)."""
    if plan == SubscriptionPlan.FREE:
        return (
            FREE_QUIZZES_PER_MONTH,
            FREE_MEMBER_LIMIT,
            SubscriptionFeatures(
                leagues=False, question_bank=False, members=False, share=False, custom_branding=False
            ),
        )
    return (
        None,
        PREMIUM_MEMBER_LIMIT,
        SubscriptionFeatures(
            leagues=True, question_bank=True, members=True, share=True, custom_branding=True
        ),
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def get_org(session: AsyncSession, org_id: uuid.UUID) -> Organization:
    org = await session.get(Organization, org_id)
    if not org:
        raise NotFoundError("organization_not_found")
    return org


async def count_members(session: AsyncSession, org_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Membership).where(Membership.org_id == org_id)
    )
    return result.scalar_one()


async def count_quizzes_this_month(
    session: AsyncSession, org_id: uuid.UUID, now: Optional[datetime] = None
) -> int:
    month_start = start_of_month(now or datetime.now(timezone.utc))
    result = await session.execute(
        select(func.count())
        .select_from(Quiz)
        .where(
            Quiz.org_id == org_id,
            Quiz.is_deleted == False,  # noqa: E712
            Quiz.created_at >= month_start,
        )
    )
    return result.scalar_one()


async def get_current_subscription(
    session: AsyncSession, org_id: uuid.UUID, now: Optional[datetime] = None
) -> SubscriptionResponse:
    now = now or datetime.now(timezone.utc)
    org = await get_org(session, org_id)
    plan = effective_plan(org, now)
    quiz_limit, member_limit, features = plan_limits(plan)
    trial_ends_at = as_utc(org.trial_ends_at)
    return SubscriptionResponse(
        plan=plan,
        is_trial_active=(
            org.subscription_plan == SubscriptionPlan.TRIAL.value
            and trial_ends_at is not None
            and trial_ends_at >= now
        ),
        trial_ends_at=trial_ends_at,
        quizzes_used_this_month=await count_quizzes_this_month(session, org_id, now),
        quizzes_limit_per_month=quiz_limit,
        member_count=await count_members(session, org_id),
        member_limit=member_limit,
        features=features,
    )


# ---------------------------------------------------------------------------
# Transitions (owner only)
# ---------------------------------------------------------------------------

def _ensure_owner_of(ctx: RequestContext, org_id: uuid.UUID) -> None:
    if ctx.org_id != org_id:
        raise AuthorizationError("forbidden")
    if ctx.role != Role.OWNER:
        raise AuthorizationError("owner_only")


async def _set_plan(
    ctx: RequestContext,
    session: AsyncSession,
    org: Organization,
    plan: SubscriptionPlan,
    trial_ends_at: Optional[datetime],
    now: datetime,
) -> Organization:
    previous = org.subscription_plan
    org.subscription_plan = plan.value
    org.trial_ends_at = trial_ends_at
    org.updated_at = now
    session.add(org)
    await session.flush()
    await audit.record(
        session,
        ctx,
        "subscription.changed",
        "organization",
        org.id,
        {"from": previous, "to": plan.value},
    )
    return org


async def start_trial(
    ctx: RequestContext,
    session: AsyncSession,
    org_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Organization:
    """Free -> Trial for ``TRIAL_DAYS`` days."""
    _ensure_owner_of(ctx, org_id)
    now = now or datetime.now(timezone.utc)
    org = await get_org(session, org_id)
    if effective_plan(org, now) != SubscriptionPlan.FREE:
        raise PolicyViolation("trial_only_from_free")

    org = await _set_plan(
        ctx, session, org, SubscriptionPlan.TRIAL, now + timedelta(days=TRIAL_DAYS), now
    )
    log.info("subscription.trial_started", org_id=str(org_id), trial_ends_at=str(org.trial_ends_at))
    return org


async def set_premium(
    ctx: RequestContext,
    session: AsyncSession,
    org_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Organization:
    """Any plan -> Premium."""
    _ensure_owner_of(ctx, org_id)
    now = now or datetime.now(timezone.utc)
    org = await get_org(session, org_id)
    org = await _set_plan(ctx, session, org, SubscriptionPlan.PREMIUM, None, now)
    log.info("subscription.premium_set", org_id=str(org_id))
    return org


async def downgrade_to_free(
    ctx: RequestContext,
    session: AsyncSession,
    org_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Organization:
    """Any plan -> Free; only once the org is back to a single member."""
    _ensure_owner_of(ctx, org_id)
    now = now or datetime.now(timezone.utc)
    org = await get_org(session, org_id)
    if await count_members(session, org_id) > FREE_MEMBER_LIMIT:
        raise PolicyViolation("downgrade_remove_members_first")

    org = await _set_plan(ctx, session, org, SubscriptionPlan.FREE, None, now)
    log.info("subscription.downgraded", org_id=str(org_id))
    return org


async def expire_trials(session: AsyncSession, now: Optional[datetime] = None) -> int:
    """Flip every stored trial past its end date to free. Returns the count."""
    now = now or datetime.now(timezone.utc)
    result = await session.execute(
        select(Organization).where(
            Organization.subscription_plan == SubscriptionPlan.TRIAL.value,
            Organization.trial_ends_at.is_not(None),
            Organization.trial_ends_at < now,
        )
    )
    expired = result.scalars().all()
    for org in expired:
        org.subscription_plan = SubscriptionPlan.FREE.value
        org.trial_ends_at = None
        org.updated_at = now
        session.add(org)
        log.info("trial.expired", org_id=str(org.id))

    if expired:
        await session.flush()
    return len(expired)


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------

async def enforce_feature(
    ctx: RequestContext,
    session: AsyncSession,
    feature: Feature | str,
    now: Optional[datetime] = None,
) -> None:
    name = feature.value if isinstance(feature, Feature) else feature
    org = await get_org(session, ctx.org_id)
    if effective_plan(org, now) == SubscriptionPlan.FREE and name in GATED_FEATURES:
        raise PolicyViolation("feature_requires_premium", feature=name)


async def enforce_quiz_monthly_limit(
    ctx: RequestContext, session: AsyncSession, now: Optional[datetime] = None
) -> None:
    org = await get_org(session, ctx.org_id)
    if effective_plan(org, now) != SubscriptionPlan.FREE:
        return
    if await count_quizzes_this_month(session, ctx.org_id, now) >= FREE_QUIZZES_PER_MONTH:
        raise PolicyViolation("free_quiz_limit_reached")


async def enforce_member_limit(
    ctx: RequestContext, session: AsyncSession, now: Optional[datetime] = None
) -> None:
    org = await get_org(session, ctx.org_id)
    if effective_plan(org, now) != SubscriptionPlan.FREE:
        return
    if await count_members(session, ctx.org_id) >= FREE_MEMBER_LIMIT:
        raise PolicyViolation("free_member_limit_reached")
