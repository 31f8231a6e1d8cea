"""
Question bank service.

Questions belong to a category of the same organization and carry an
ordered list of answer options. Options are owned by their question: an
update that supplies options replaces the whole list.
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import RequestContext
from app.models.base import utcnow
from app.models.category import Category
from app.models.question import Question, QuestionOption
from app.services import audit
from app.services.catalog import DEFAULT_PAGE_SIZE, get_or_404, paginate, soft_delete
from quizory_shared.schemas.questions import (
    QuestionCreate,
    QuestionOptionIn,
    QuestionOptionRead,
    QuestionRead,
    QuestionUpdate,
)

log = structlog.get_logger()


async def question_read(session: AsyncSession, question: Question) -> QuestionRead:
    result = await session.execute(
        select(QuestionOption)
        .where(QuestionOption.question_id == question.id)
        .order_by(QuestionOption.order_index)
    )
    return QuestionRead(
        id=question.id,
        org_id=question.org_id,
        category_id=question.category_id,
        type=question.type,
        text=question.text,
        image_url=question.image_url,
        order_index=question.order_index,
        options=[QuestionOptionRead.model_validate(o) for o in result.scalars().all()],
        created_at=question.created_at,
        updated_at=question.updated_at,
    )


def _add_options(
    session: AsyncSession, question_id: uuid.UUID, options: Sequence[QuestionOptionIn]
) -> None:
    for option in options:
        session.add(
            QuestionOption(
                question_id=question_id,
                text=option.text,
                is_correct=option.is_correct,
                order_index=option.order_index,
                match_key=option.match_key,
            )
        )


async def list_questions(
    session: AsyncSession,
    org_id: uuid.UUID,
    category_id: Optional[uuid.UUID] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[QuestionRead], int]:
    """Questions in display order, optionally for one category."""
    stmt = select(Question).where(
        Question.org_id == org_id, Question.is_deleted == False  # noqa: E712
    )
    if category_id is not None:
        stmt = stmt.where(Question.category_id == category_id)

    questions, total = await paginate(
        session, stmt.order_by(Question.order_index, Question.created_at), page, page_size
    )
    return [await question_read(session, q) for q in questions], total


async def get_question(
    session: AsyncSession, org_id: uuid.UUID, question_id: uuid.UUID
) -> QuestionRead:
    question = await get_or_404(session, Question, question_id, org_id)
    return await question_read(session, question)


async def create_question(
    ctx: RequestContext, session: AsyncSession, req: QuestionCreate
) -> QuestionRead:
    await get_or_404(session, Category, req.category_id, ctx.org_id)

    question = Question(
        org_id=ctx.org_id,
        category_id=req.category_id,
        type=req.type.value,
        text=req.text,
        image_url=req.image_url,
        order_index=req.order_index,
    )
    session.add(question)
    await session.flush()
    _add_options(session, question.id, req.options)
    await session.flush()
    await audit.record(
        session, ctx, "question.created", "question", question.id,
        {"type": req.type.value, "options": len(req.options)},
    )

    log.info("question.created", question_id=str(question.id), org_id=str(ctx.org_id))
    return await question_read(session, question)


async def update_question(
    ctx: RequestContext,
    session: AsyncSession,
    question_id: uuid.UUID,
    req: QuestionUpdate,
) -> QuestionRead:
    question = await get_or_404(session, Question, question_id, ctx.org_id)
    if req.text is not None:
        question.text = req.text
    if req.image_url is not None:
        question.image_url = req.image_url
    if req.order_index is not None:
        question.order_index = req.order_index
    question.updated_at = utcnow()
    session.add(question)

    if req.options is not None:
        await session.execute(
            delete(QuestionOption).where(QuestionOption.question_id == question.id)
        )
        _add_options(session, question.id, req.options)

    await session.flush()
    await audit.record(session, ctx, "question.updated", "question", question.id)
    return await question_read(session, question)


async def delete_question(
    ctx: RequestContext, session: AsyncSession, question_id: uuid.UUID
) -> None:
    await soft_delete(ctx, session, Question, question_id)
