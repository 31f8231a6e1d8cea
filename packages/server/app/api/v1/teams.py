"""
Team endpoints.

GET    /api/v1/orgs/{orgId}/teams                   - Search teams (name or alias)
POST   /api/v1/orgs/{orgId}/teams                   - Create (Admin)
GET    /api/v1/orgs/{orgId}/teams/{teamId}          - Get with aliases
PUT    /api/v1/orgs/{orgId}/teams/{teamId}          - Rename (Admin)
DELETE /api/v1/orgs/{orgId}/teams/{teamId}          - Soft delete (Admin)
POST   /api/v1/orgs/{orgId}/teams/{teamId}/aliases  - Add alias (Admin)
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, require_admin, require_user
from app.core.database import get_session
from app.models.team import Team
from app.services import catalog
from quizory_shared.schemas.catalog import (
    TeamAliasCreate,
    TeamAliasRead,
    TeamCreate,
    TeamRead,
    TeamUpdate,
)
from quizory_shared.schemas.common import Page

router = APIRouter()


@router.get("", response_model=Page[TeamRead])
async def list_teams(
    query: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await catalog.list_teams(session, ctx.org_id, query, page, page_size)
    return Page[TeamRead](items=items, total=total, page=page, page_size=page_size)


@router.post("", response_model=TeamRead, status_code=201)
async def create_team(
    body: TeamCreate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    team = await catalog.create_team(ctx, session, body.name)
    return await catalog.team_read(session, team)


@router.get("/{teamId}", response_model=TeamRead)
async def get_team(
    teamId: uuid.UUID,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    team = await catalog.get_or_404(session, Team, teamId, ctx.org_id)
    return await catalog.team_read(session, team)


@router.put("/{teamId}", response_model=TeamRead)
async def update_team(
    teamId: uuid.UUID,
    body: TeamUpdate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    team = await catalog.rename_team(ctx, session, teamId, body.name)
    return await catalog.team_read(session, team)


@router.delete("/{teamId}", status_code=204)
async def delete_team(
    teamId: uuid.UUID,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await catalog.delete_team(ctx, session, teamId)


@router.post("/{teamId}/aliases", response_model=TeamAliasRead, status_code=201)
async def add_alias(
    teamId: uuid.UUID,
    body: TeamAliasCreate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    alias = await catalog.add_alias(ctx, session, teamId, body)
    return TeamAliasRead.model_validate(alias)
