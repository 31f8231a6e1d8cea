"""
Statistics endpoints.

GET /api/v1/orgs/{orgId}/statistics/quizzes                  - Quiz summaries
GET /api/v1/orgs/{orgId}/statistics/leagues/{leagueId}        - League standings
GET /api/v1/orgs/{orgId}/statistics/categories                - Category averages
GET /api/v1/orgs/{orgId}/statistics/teams/{teamId}/history    - Team history
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, require_user
from app.core.database import get_session
from app.services import statistics
from quizory_shared.schemas.common import Page
from quizory_shared.schemas.statistics import (
    CategoryStats,
    LeagueSummary,
    QuizSummary,
    TeamHistoryItem,
)

router = APIRouter()


@router.get("/quizzes", response_model=Page[QuizSummary])
async def quiz_summaries(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    league_id: Optional[uuid.UUID] = Query(None),
    team_id: Optional[uuid.UUID] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await statistics.quiz_summaries(
        session, ctx.org_id, date_from, date_to, league_id, team_id, page, page_size
    )
    return Page[QuizSummary](items=items, total=total, page=page, page_size=page_size)


@router.get("/leagues/{leagueId}", response_model=LeagueSummary)
async def league_summary(
    leagueId: uuid.UUID,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await statistics.league_summary(session, ctx.org_id, leagueId)


@router.get("/categories", response_model=list[CategoryStats])
async def category_stats(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    league_id: Optional[uuid.UUID] = Query(None),
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await statistics.category_stats(session, ctx.org_id, date_from, date_to, league_id)


@router.get("/teams/{teamId}/history", response_model=list[TeamHistoryItem])
async def team_history(
    teamId: uuid.UUID,
    league_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await statistics.ensure_team(session, ctx.org_id, teamId)
    return await statistics.team_history(session, ctx.org_id, teamId, league_id, limit)
