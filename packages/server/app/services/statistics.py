"""
Statistics built on top of the scoring engine.

Every figure here is recomputed from score entries on each call; nothing is
cached or stored.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError
from app.models.category import Category
from app.models.league import League
from app.models.quiz import Quiz, QuizCategory, QuizTeam
from app.models.score import ScoreEntry
from app.models.team import Team
from app.services import scoring
from app.services.catalog import get_or_404
from quizory_shared.schemas.quizzes import RankingItem
from quizory_shared.schemas.statistics import (
    CategoryStats,
    LeagueSummary,
    QuizSummary,
    TeamHistoryItem,
)

LEAGUE_TOP_TEAMS = 20


def _quiz_filter(
    org_id: uuid.UUID,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    league_id: Optional[uuid.UUID] = None,
    team_id: Optional[uuid.UUID] = None,
):
    stmt = select(Quiz).where(Quiz.org_id == org_id, Quiz.is_deleted == False)  # noqa: E712
    if date_from is not None:
        stmt = stmt.where(Quiz.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Quiz.date <= date_to)
    if league_id is not None:
        stmt = stmt.where(Quiz.league_id == league_id)
    if team_id is not None:
        stmt = stmt.where(
            Quiz.id.in_(select(QuizTeam.quiz_id).where(QuizTeam.team_id == team_id))
        )
    return stmt


async def _count(session: AsyncSession, model, quiz_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(model).where(model.quiz_id == quiz_id)
    )
    return result.scalar_one()


async def quiz_summaries(
    session: AsyncSession,
    org_id: uuid.UUID,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    league_id: Optional[uuid.UUID] = None,
    team_id: Optional[uuid.UUID] = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[QuizSummary], int]:
    """Newest first, with the winner of each quiz."""
    stmt = _quiz_filter(org_id, date_from, date_to, league_id, team_id)
    total = (
        await session.execute(select(func.count()).select_from(stmt.subquery()))
    ).scalar_one()
    result = await session.execute(
        stmt.order_by(Quiz.date.desc()).offset((page - 1) * page_size).limit(page_size)
    )

    items = []
    for quiz in result.scalars().all():
        ranked = scoring.rank_teams(await scoring.compute_ranking(session, quiz.id, org_id))
        winner = ranked[0] if ranked else None
        items.append(
            QuizSummary(
                quiz_id=quiz.id,
                name=quiz.name,
                date=quiz.date,
                location=quiz.location,
                status=quiz.status,
                team_count=await _count(session, QuizTeam, quiz.id),
                category_count=await _count(session, QuizCategory, quiz.id),
                winner_team_id=winner[1] if winner else None,
                winner_points=winner[2] if winner else None,
            )
        )
    return items, total


async def league_summary(
    session: AsyncSession, org_id: uuid.UUID, league_id: uuid.UUID
) -> LeagueSummary:
    """League standings: each team's quiz totals summed over the league."""
    league = await get_or_404(session, League, league_id, org_id)
    result = await session.execute(_quiz_filter(org_id, league_id=league_id))
    quiz_ids = [quiz.id for quiz in result.scalars().all()]

    standings: dict[uuid.UUID, int] = defaultdict(int)
    for quiz_id in quiz_ids:
        for team_id, points in (await scoring.compute_ranking(session, quiz_id, org_id)).items():
            standings[team_id] += points

    top = scoring.rank_teams(dict(standings))[:LEAGUE_TOP_TEAMS]
    names = await scoring.team_names(session, [team_id for _, team_id, _ in top])
    return LeagueSummary(
        league_id=league.id,
        name=league.name,
        quiz_count=len(quiz_ids),
        top_teams=[
            RankingItem(rank=rank, team_id=team_id, team_name=names.get(team_id, ""), points=points)
            for rank, team_id, points in top
        ],
    )


async def team_history(
    session: AsyncSession,
    org_id: uuid.UUID,
    team_id: uuid.UUID,
    league_id: Optional[uuid.UUID] = None,
    limit: int = 20,
) -> list[TeamHistoryItem]:
    """Rank and points of one team in its most recent quizzes.

    Quizzes where the team has no score entries are skipped.
    """
    result = await session.execute(
        _quiz_filter(org_id, league_id=league_id, team_id=team_id)
        .order_by(Quiz.date.desc())
        .limit(limit)
    )
    history = []
    for quiz in result.scalars().all():
        for rank, ranked_team_id, points in scoring.rank_teams(
            await scoring.compute_ranking(session, quiz.id, org_id)
        ):
            if ranked_team_id == team_id:
                history.append(
                    TeamHistoryItem(
                        quiz_id=quiz.id, quiz_name=quiz.name, date=quiz.date, rank=rank, points=points
                    )
                )
                break
    return history


async def category_stats(
    session: AsyncSession,
    org_id: uuid.UUID,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    league_id: Optional[uuid.UUID] = None,
) -> list[CategoryStats]:
    """Average points plus bonus per category per quiz (help doubling is not applied)."""
    quiz_ids = select(_quiz_filter(org_id, date_from, date_to, league_id).subquery().c.id)
    result = await session.execute(
        select(
            ScoreEntry.category_id,
            ScoreEntry.quiz_id,
            func.sum(ScoreEntry.points + ScoreEntry.bonus_points),
        )
        .where(
            ScoreEntry.org_id == org_id,
            ScoreEntry.is_deleted == False,  # noqa: E712
            ScoreEntry.quiz_id.in_(quiz_ids),
        )
        .group_by(ScoreEntry.category_id, ScoreEntry.quiz_id)
    )
    per_category: dict[uuid.UUID, list[int]] = defaultdict(list)
    for category_id, _quiz_id, total in result.all():
        per_category[category_id].append(int(total or 0))

    if not per_category:
        return []
    names_result = await session.execute(
        select(Category.id, Category.name).where(Category.id.in_(list(per_category)))
    )
    names = dict(names_result.all())
    return sorted(
        (
            CategoryStats(
                category_id=category_id,
                name=names.get(category_id, ""),
                average_points=sum(totals) / len(totals),
                quiz_count=len(totals),
            )
            for category_id, totals in per_category.items()
        ),
        key=lambda s: s.name,
    )


async def ensure_team(session: AsyncSession, org_id: uuid.UUID, team_id: uuid.UUID) -> None:
    team = await session.get(Team, team_id)
    if not team or team.org_id != org_id:
        raise NotFoundError()
