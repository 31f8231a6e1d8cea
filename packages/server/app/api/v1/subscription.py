"""
Subscription endpoints.

GET  /api/v1/orgs/{orgId}/subscription            - Current plan and limits
POST /api/v1/orgs/{orgId}/subscription/trial      - Start the 14-day trial (Owner)
POST /api/v1/orgs/{orgId}/subscription/premium    - Switch to premium (Owner)
POST /api/v1/orgs/{orgId}/subscription/downgrade  - Back to free (Owner)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, require_user
from app.core.database import get_session
from app.services import subscriptions
from quizory_shared.schemas.organizations import SubscriptionResponse

router = APIRouter()


@router.get("", response_model=SubscriptionResponse)
async def get_subscription(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await subscriptions.get_current_subscription(session, ctx.org_id)


# Owner checks happen inside the policy functions.

@router.post("/trial", response_model=SubscriptionResponse)
async def start_trial(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await subscriptions.start_trial(ctx, session, ctx.org_id)
    return await subscriptions.get_current_subscription(session, ctx.org_id)


@router.post("/premium", response_model=SubscriptionResponse)
async def set_premium(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await subscriptions.set_premium(ctx, session, ctx.org_id)
    return await subscriptions.get_current_subscription(session, ctx.org_id)


@router.post("/downgrade", response_model=SubscriptionResponse)
async def downgrade(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await subscriptions.downgrade_to_free(ctx, session, ctx.org_id)
    return await subscriptions.get_current_subscription(session, ctx.org_id)
