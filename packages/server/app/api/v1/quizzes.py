"""
Quiz endpoints.

GET    /api/v1/orgs/{orgId}/quizzes                    - List
POST   /api/v1/orgs/{orgId}/quizzes                    - Create with score grid (Admin)
GET    /api/v1/orgs/{orgId}/quizzes/{quizId}           - Get
POST   /api/v1/orgs/{orgId}/quizzes/{quizId}/status    - Change status (Admin)
DELETE /api/v1/orgs/{orgId}/quizzes/{quizId}           - Soft delete (Admin)
GET    /api/v1/orgs/{orgId}/quizzes/{quizId}/scores    - Score grid
PUT    /api/v1/orgs/{orgId}/quizzes/{quizId}/scores    - Update one cell
GET    /api/v1/orgs/{orgId}/quizzes/{quizId}/helps     - Help usage
POST   /api/v1/orgs/{orgId}/quizzes/{quizId}/helps     - Apply a help
GET    /api/v1/orgs/{orgId}/quizzes/{quizId}/ranking   - Ranking
POST   /api/v1/orgs/{orgId}/quizzes/{quizId}/share     - Create a public link (premium)
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, require_admin, require_user
from app.core.database import get_session
from app.services import quizzes as quiz_service
from app.services import scoring
from app.services import share as share_service
from quizory_shared.schemas.common import QuizStatus
from quizory_shared.schemas.quizzes import (
    HelpApply,
    HelpUsageRead,
    QuizCreate,
    QuizRead,
    QuizStatusUpdate,
    RankingItem,
    ScoreRead,
    ScoreUpdate,
    ShareCreate,
    ShareTokenResponse,
)

router = APIRouter()


@router.get("", response_model=list[QuizRead])
async def list_quizzes(
    status: Optional[QuizStatus] = Query(None),
    league_id: Optional[uuid.UUID] = Query(None),
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await quiz_service.list_quizzes(session, ctx.org_id, status, league_id)


@router.post("", response_model=QuizRead, status_code=201)
async def create_quiz(
    body: QuizCreate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create a quiz. Free plans are limited to five quizzes per calendar month."""
    return await quiz_service.create_quiz(ctx, session, body)


@router.get("/{quizId}", response_model=QuizRead)
async def get_quiz(
    quizId: uuid.UUID,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await quiz_service.get_quiz_or_404(session, quizId, ctx.org_id)


@router.post("/{quizId}/status", response_model=QuizRead)
async def change_status(
    quizId: uuid.UUID,
    body: QuizStatusUpdate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await quiz_service.transition_quiz(ctx, session, quizId, body.status)


@router.delete("/{quizId}", status_code=204)
async def delete_quiz(
    quizId: uuid.UUID,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await quiz_service.delete_quiz(ctx, session, quizId)


# ---------------------------------------------------------------------------
# Scorekeeping
# ---------------------------------------------------------------------------

@router.get("/{quizId}/scores", response_model=list[ScoreRead])
async def list_scores(
    quizId: uuid.UUID,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await quiz_service.list_scores(session, quizId, ctx.org_id)


@router.put("/{quizId}/scores", response_model=ScoreRead)
async def update_score(
    quizId: uuid.UUID,
    body: ScoreUpdate,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await quiz_service.update_score(ctx, session, quizId, body)


@router.get("/{quizId}/helps", response_model=list[HelpUsageRead])
async def list_helps(
    quizId: uuid.UUID,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await quiz_service.list_help_usages(session, quizId, ctx.org_id)


@router.post("/{quizId}/helps", response_model=HelpUsageRead, status_code=201)
async def apply_help(
    quizId: uuid.UUID,
    body: HelpApply,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await quiz_service.apply_help(ctx, session, quizId, body)


@router.get("/{quizId}/ranking", response_model=list[RankingItem])
async def get_ranking(
    quizId: uuid.UUID,
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await quiz_service.get_quiz_or_404(session, quizId, ctx.org_id)
    return await scoring.build_ranking(session, quizId, ctx.org_id)


@router.post("/{quizId}/share", response_model=ShareTokenResponse, status_code=201)
async def create_share(
    quizId: uuid.UUID,
    body: ShareCreate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await share_service.create_share_token(ctx, session, quizId, body.expires_at)
