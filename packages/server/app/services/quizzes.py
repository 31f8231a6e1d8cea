"""
Quiz service layer: quiz lifecycle, the score grid and help usage.

Handles:
- Quiz creation behind the monthly quiz gate, with the teams x categories
  score grid created in the same transaction
- Status transitions (draft -> live -> finished, with reopening)
- Score updates that respect per-entry locks
- Append-only help usage, at most once per (quiz, team, help type)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import RequestContext
from app.core.errors import ConflictError, NotFoundError, PolicyViolation
from app.models.category import Category
from app.models.help import HelpType, HelpUsage
from app.models.league import League
from app.models.quiz import Quiz, QuizCategory, QuizTeam
from app.models.score import ScoreEntry
from app.models.team import Team
from app.services import audit, subscriptions
from app.services.catalog import get_or_404
from quizory_shared.schemas.common import Feature, QuizStatus
from quizory_shared.schemas.quizzes import (
    QUIZ_TRANSITIONS,
    HelpApply,
    QuizCreate,
    ScoreUpdate,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def get_quiz_or_404(
    session: AsyncSession, quiz_id: uuid.UUID, org_id: uuid.UUID
) -> Quiz:
    return await get_or_404(session, Quiz, quiz_id, org_id)


async def _ensure_all_in_org(
    session: AsyncSession, model, ids: Sequence[uuid.UUID], org_id: uuid.UUID
) -> None:
    if not ids:
        return
    result = await session.execute(
        select(model.id).where(
            model.id.in_(ids),
            model.org_id == org_id,
            model.is_deleted == False,  # noqa: E712
        )
    )
    if len(set(result.scalars().all())) != len(set(ids)):
        raise NotFoundError()


async def quiz_team_ids(session: AsyncSession, quiz_id: uuid.UUID) -> list[uuid.UUID]:
    result = await session.execute(select(QuizTeam.team_id).where(QuizTeam.quiz_id == quiz_id))
    return list(result.scalars().all())


async def quiz_category_ids(session: AsyncSession, quiz_id: uuid.UUID) -> list[uuid.UUID]:
    result = await session.execute(
        select(QuizCategory.category_id).where(QuizCategory.quiz_id == quiz_id)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def list_quizzes(
    session: AsyncSession,
    org_id: uuid.UUID,
    status: Optional[QuizStatus] = None,
    league_id: Optional[uuid.UUID] = None,
) -> list[Quiz]:
    stmt = select(Quiz).where(Quiz.org_id == org_id, Quiz.is_deleted == False)  # noqa: E712
    if status is not None:
        stmt = stmt.where(Quiz.status == status.value)
    if league_id is not None:
        stmt = stmt.where(Quiz.league_id == league_id)
    result = await session.execute(stmt.order_by(Quiz.date.desc()))
    return list(result.scalars().all())


async def create_quiz(
    ctx: RequestContext,
    session: AsyncSession,
    quiz_in: QuizCreate,
    now: Optional[datetime] = None,
) -> Quiz:
    """Create a quiz with its participants and an all-zero score grid."""
    await subscriptions.enforce_quiz_monthly_limit(ctx, session, now)
    if quiz_in.league_id is not None:
        await subscriptions.enforce_feature(ctx, session, Feature.LEAGUES, now)
        await get_or_404(session, League, quiz_in.league_id, ctx.org_id)

    team_ids = list(dict.fromkeys(quiz_in.team_ids))
    category_ids = list(dict.fromkeys(quiz_in.category_ids))
    await _ensure_all_in_org(session, Team, team_ids, ctx.org_id)
    await _ensure_all_in_org(session, Category, category_ids, ctx.org_id)

    quiz = Quiz(
        org_id=ctx.org_id,
        name=quiz_in.name,
        date=quiz_in.date,
        location=quiz_in.location,
        league_id=quiz_in.league_id,
        status=QuizStatus.DRAFT.value,
    )
    if now is not None:
        quiz.created_at = now
        quiz.updated_at = now
    session.add(quiz)
    await session.flush()

    for category_id in category_ids:
        session.add(QuizCategory(quiz_id=quiz.id, category_id=category_id, org_id=ctx.org_id))
    for team_id in team_ids:
        session.add(QuizTeam(quiz_id=quiz.id, team_id=team_id, org_id=ctx.org_id))
        for category_id in category_ids:
            session.add(
                ScoreEntry(
                    org_id=ctx.org_id,
                    quiz_id=quiz.id,
                    team_id=team_id,
                    category_id=category_id,
                )
            )
    await session.flush()
    await audit.record(
        session, ctx, "quiz.created", "quiz", quiz.id,
        {"teams": len(team_ids), "categories": len(category_ids)},
    )

    log.info(
        "quiz.created",
        quiz_id=str(quiz.id),
        org_id=str(ctx.org_id),
        teams=len(team_ids),
        categories=len(category_ids),
    )
    return quiz


async def transition_quiz(
    ctx: RequestContext,
    session: AsyncSession,
    quiz_id: uuid.UUID,
    target: QuizStatus,
) -> Quiz:
    quiz = await get_quiz_or_404(session, quiz_id, ctx.org_id)
    current = QuizStatus(quiz.status)
    if current == target:
        return quiz
    if target not in QUIZ_TRANSITIONS[current]:
        raise PolicyViolation(
            "invalid_quiz_transition", current=current.value, target=target.value
        )

    quiz.status = target.value
    quiz.updated_at = datetime.now(timezone.utc)
    session.add(quiz)
    await session.flush()
    await audit.record(
        session, ctx, "quiz.status_changed", "quiz", quiz.id,
        {"from": current.value, "to": target.value},
    )
    log.info("quiz.status_changed", quiz_id=str(quiz.id), status=target.value)
    return quiz


async def delete_quiz(ctx: RequestContext, session: AsyncSession, quiz_id: uuid.UUID) -> None:
    """Soft delete; a deleted quiz no longer counts toward the monthly limit."""
    quiz = await get_quiz_or_404(session, quiz_id, ctx.org_id)
    quiz.is_deleted = True
    session.add(quiz)
    await session.flush()
    await audit.record(session, ctx, "quiz.deleted", "quiz", quiz.id)
    log.info("quiz.deleted", quiz_id=str(quiz.id))


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------

async def list_scores(
    session: AsyncSession, quiz_id: uuid.UUID, org_id: uuid.UUID
) -> list[ScoreEntry]:
    await get_quiz_or_404(session, quiz_id, org_id)
    result = await session.execute(
        select(ScoreEntry).where(
            ScoreEntry.org_id == org_id,
            ScoreEntry.quiz_id == quiz_id,
            ScoreEntry.is_deleted == False,  # noqa: E712
        )
    )
    return list(result.scalars().all())


async def update_score(
    ctx: RequestContext,
    session: AsyncSession,
    quiz_id: uuid.UUID,
    score_in: ScoreUpdate,
) -> ScoreEntry:
    """Overwrite one grid cell. Locked cells cannot change, not even to unlock."""
    await get_quiz_or_404(session, quiz_id, ctx.org_id)
    result = await session.execute(
        select(ScoreEntry).where(
            ScoreEntry.org_id == ctx.org_id,
            ScoreEntry.quiz_id == quiz_id,
            ScoreEntry.team_id == score_in.team_id,
            ScoreEntry.category_id == score_in.category_id,
            ScoreEntry.is_deleted == False,  # noqa: E712
        )
    )
    entry = result.scalar_one_or_none()
    if not entry:
        raise NotFoundError()
    if entry.is_locked:
        raise ConflictError("score_locked")

    entry.points = score_in.points
    entry.bonus_points = score_in.bonus_points
    entry.notes = score_in.notes
    entry.is_locked = score_in.is_locked
    entry.updated_at = datetime.now(timezone.utc)
    session.add(entry)
    await session.flush()
    await audit.record(
        session, ctx, "score.updated", "score_entry", entry.id,
        {"points": entry.points, "bonus_points": entry.bonus_points, "locked": entry.is_locked},
    )
    return entry


# ---------------------------------------------------------------------------
# Helps
# ---------------------------------------------------------------------------

async def apply_help(
    ctx: RequestContext,
    session: AsyncSession,
    quiz_id: uuid.UUID,
    help_in: HelpApply,
) -> HelpUsage:
    await get_quiz_or_404(session, quiz_id, ctx.org_id)
    await get_or_404(session, HelpType, help_in.help_type_id, ctx.org_id)
    if help_in.team_id not in await quiz_team_ids(session, quiz_id):
        raise NotFoundError("team_not_in_quiz")

    existing = await session.execute(
        select(HelpUsage).where(
            HelpUsage.org_id == ctx.org_id,
            HelpUsage.quiz_id == quiz_id,
            HelpUsage.team_id == help_in.team_id,
            HelpUsage.help_type_id == help_in.help_type_id,
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError("help_already_used")

    usage = HelpUsage(
        org_id=ctx.org_id,
        quiz_id=quiz_id,
        team_id=help_in.team_id,
        help_type_id=help_in.help_type_id,
    )
    session.add(usage)
    await session.flush()
    await audit.record(
        session, ctx, "help.applied", "help_usage", usage.id,
        {"team_id": str(help_in.team_id), "help_type_id": str(help_in.help_type_id)},
    )
    log.info("help.applied", quiz_id=str(quiz_id), team_id=str(help_in.team_id))
    return usage


async def list_help_usages(
    session: AsyncSession, quiz_id: uuid.UUID, org_id: uuid.UUID
) -> list[HelpUsage]:
    await get_quiz_or_404(session, quiz_id, org_id)
    result = await session.execute(
        select(HelpUsage).where(HelpUsage.org_id == org_id, HelpUsage.quiz_id == quiz_id)
    )
    return list(result.scalars().all())
