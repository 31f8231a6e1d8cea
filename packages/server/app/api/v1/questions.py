"""
Question bank endpoints. Every route requires the ``questionBank`` feature.

GET    /api/v1/orgs/{orgId}/questions                 - List (filter by category, paginated)
POST   /api/v1/orgs/{orgId}/questions                 - Create with options (Admin)
GET    /api/v1/orgs/{orgId}/questions/{questionId}    - Get with options
PUT    /api/v1/orgs/{orgId}/questions/{questionId}    - Update, replacing options if given (Admin)
DELETE /api/v1/orgs/{orgId}/questions/{questionId}    - Soft delete (Admin)
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, ensure_at_least, require_user
from app.core.database import get_session
from app.services import questions as question_service
from app.services import subscriptions
from quizory_shared.schemas.common import Feature, Page, Role
from quizory_shared.schemas.questions import QuestionCreate, QuestionRead, QuestionUpdate

router = APIRouter()


async def require_question_bank(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
) -> RequestContext:
    await subscriptions.enforce_feature(ctx, session, Feature.QUESTION_BANK)
    return ctx


async def require_question_editor(
    ctx: RequestContext = Depends(require_question_bank),
) -> RequestContext:
    ensure_at_least(ctx, Role.ADMIN)
    return ctx


@router.get("", response_model=Page[QuestionRead])
async def list_questions(
    category_id: Optional[uuid.UUID] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    ctx: RequestContext = Depends(require_question_bank),
    session: AsyncSession = Depends(get_session),
):
    items, total = await question_service.list_questions(
        session, ctx.org_id, category_id, page, page_size
    )
    return Page[QuestionRead](items=items, total=total, page=page, page_size=page_size)


@router.post("", response_model=QuestionRead, status_code=201)
async def create_question(
    body: QuestionCreate,
    ctx: RequestContext = Depends(require_question_editor),
    session: AsyncSession = Depends(get_session),
):
    return await question_service.create_question(ctx, session, body)


@router.get("/{questionId}", response_model=QuestionRead)
async def get_question(
    questionId: uuid.UUID,
    ctx: RequestContext = Depends(require_question_bank),
    session: AsyncSession = Depends(get_session),
):
    return await question_service.get_question(session, ctx.org_id, questionId)


@router.put("/{questionId}", response_model=QuestionRead)
async def update_question(
    questionId: uuid.UUID,
    body: QuestionUpdate,
    ctx: RequestContext = Depends(require_question_editor),
    session: AsyncSession = Depends(get_session),
):
    return await question_service.update_question(ctx, session, questionId, body)


@router.delete("/{questionId}", status_code=204)
async def delete_question(
    questionId: uuid.UUID,
    ctx: RequestContext = Depends(require_question_editor),
    session: AsyncSession = Depends(get_session),
):
    await question_service.delete_question(ctx, session, questionId)
