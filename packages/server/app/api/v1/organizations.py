"""
Organization API endpoints.

GET    /api/v1/orgs/{orgId}                          - Org details with members
PATCH  /api/v1/orgs/{orgId}                          - Update name/colour (Owner)
GET    /api/v1/orgs/{orgId}/members                  - List members (Admin)
POST   /api/v1/orgs/{orgId}/members                  - Invite a member (Admin)
PUT    /api/v1/orgs/{orgId}/members/{userId}/role    - Change a member's role (Owner)
DELETE /api/v1/orgs/{orgId}/members/{userId}         - Remove a member (Admin)
PUT    /api/v1/orgs/{orgId}/language                 - Caller's preferred language
GET    /api/v1/orgs/{orgId}/settings                 - Quiz defaults
PUT    /api/v1/orgs/{orgId}/settings                 - Update quiz defaults (Admin)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, require_admin, require_owner, require_user
from app.core.database import get_session
from app.services import organizations as org_service
from quizory_shared.schemas.common import Page
from quizory_shared.schemas.organizations import (
    LanguageUpdateRequest,
    MemberInviteRequest,
    MemberResponse,
    MemberRoleUpdateRequest,
    OrgDetailResponse,
    OrgResponse,
    OrgSettingsResponse,
    OrgSettingsUpdate,
    OrgUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=OrgDetailResponse)
async def get_org(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    org = await org_service.get_org(ctx.org_id, session)
    members = await org_service.list_members(ctx.org_id, session)
    return OrgDetailResponse(org=OrgResponse.model_validate(org), members=members)


@router.patch("", response_model=OrgResponse)
async def update_org(
    body: OrgUpdateRequest,
    ctx: RequestContext = Depends(require_owner),
    session: AsyncSession = Depends(get_session),
):
    org = await org_service.update_org(ctx, body, session)
    return OrgResponse.model_validate(org)


@router.get("/members", response_model=Page[MemberResponse])
async def list_members(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    members = await org_service.list_members(ctx.org_id, session)
    start = (page - 1) * page_size
    return Page[MemberResponse](
        items=members[start:start + page_size],
        total=len(members),
        page=page,
        page_size=page_size,
    )


@router.post("/members", response_model=MemberResponse, status_code=201)
async def invite_member(
    body: MemberInviteRequest,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Invite by email. Needs a paid plan and respects the admin cap."""
    return await org_service.invite_member(ctx, body, session)


@router.put("/members/{userId}/role", response_model=MemberResponse)
async def change_member_role(
    userId: uuid.UUID,
    body: MemberRoleUpdateRequest,
    ctx: RequestContext = Depends(require_owner),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.change_member_role(ctx, userId, body.role, session)


@router.delete("/members/{userId}", status_code=204)
async def remove_member(
    userId: uuid.UUID,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await org_service.remove_member(ctx, userId, session)


@router.put("/language", status_code=204)
async def set_language(
    body: LanguageUpdateRequest,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await org_service.set_preferred_language(ctx, body.preferred_language, session)


@router.get("/settings", response_model=OrgSettingsResponse)
async def get_settings(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.get_settings(ctx.org_id, session)


@router.put("/settings", response_model=OrgSettingsResponse)
async def update_settings(
    body: OrgSettingsUpdate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.update_settings(ctx, body, session)
