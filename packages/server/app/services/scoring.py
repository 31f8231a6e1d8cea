"""
Scoring engine: per-team totals and rankings for a single quiz.

A team's total is the sum of ``points + bonus_points`` over all of its
category entries, doubled once when the team used any help whose behavior
is ``double_score`` in that quiz. Teams without score entries never appear
in the result.
"""

from __future__ import annotations

import uuid
from collections.abc import Collection, Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.help import HelpType, HelpUsage
from app.models.score import ScoreEntry
from app.models.team import Team
from quizory_shared.schemas.common import HelpBehavior
from quizory_shared.schemas.quizzes import RankingItem


def aggregate_totals(
    entries: Iterable[tuple[uuid.UUID, int]],
    double_team_ids: Collection[uuid.UUID],
) -> dict[uuid.UUID, int]:
    """Sum ``(team_id, points)`` pairs per team and apply the double-score help.

    Doubling is applied to the aggregate, never per entry, and at most once
    per team.
    """
    totals: dict[uuid.UUID, int] = {}
    for team_id, points in entries:
        totals[team_id] = totals.get(team_id, 0) + points
    return {
        team_id: total * 2 if team_id in double_team_ids else total
        for team_id, total in totals.items()
    }


def rank_teams(totals: dict[uuid.UUID, int]) -> list[tuple[int, uuid.UUID, int]]:
    """Order totals into ``(rank, team_id, points)``, best first.

    Equal totals are ordered by team id so the result is reproducible.
    """
    ordered = sorted(totals.items(), key=lambda item: (-item[1], str(item[0])))
    return [(index + 1, team_id, points) for index, (team_id, points) in enumerate(ordered)]


async def double_score_team_ids(
    session: AsyncSession, quiz_id: uuid.UUID, org_id: uuid.UUID
) -> set[uuid.UUID]:
    result = await session.execute(
        select(HelpUsage.team_id)
        .join(HelpType, HelpType.id == HelpUsage.help_type_id)
        .where(
            HelpUsage.org_id == org_id,
            HelpUsage.quiz_id == quiz_id,
            HelpUsage.is_deleted == False,  # noqa: E712
            HelpType.org_id == org_id,
            HelpType.is_deleted == False,  # noqa: E712
            HelpType.behavior == HelpBehavior.DOUBLE_SCORE.value,
        )
        .distinct()
    )
    return set(result.scalars().all())


async def compute_ranking(
    session: AsyncSession, quiz_id: uuid.UUID, org_id: uuid.UUID
) -> dict[uuid.UUID, int]:
    """Final total per team for one quiz. Empty when nothing was scored."""
    result = await session.execute(
        select(ScoreEntry.team_id, ScoreEntry.points, ScoreEntry.bonus_points).where(
            ScoreEntry.org_id == org_id,
            ScoreEntry.quiz_id == quiz_id,
            ScoreEntry.is_deleted == False,  # noqa: E712
        )
    )
    entries = [(team_id, points + bonus) for team_id, points, bonus in result.all()]
    if not entries:
        return {}

    doubled = await double_score_team_ids(session, quiz_id, org_id)
    return aggregate_totals(entries, doubled)


async def team_names(session: AsyncSession, team_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, str]:
    """Names for ranking output; soft-deleted teams keep their historical name."""
    ids = list(team_ids)
    if not ids:
        return {}
    result = await session.execute(select(Team.id, Team.name).where(Team.id.in_(ids)))
    return {team_id: name for team_id, name in result.all()}


async def build_ranking(
    session: AsyncSession, quiz_id: uuid.UUID, org_id: uuid.UUID
) -> list[RankingItem]:
    totals = await compute_ranking(session, quiz_id, org_id)
    names = await team_names(session, totals.keys())
    return [
        RankingItem(rank=rank, team_id=team_id, team_name=names.get(team_id, ""), points=points)
        for rank, team_id, points in rank_teams(totals)
    ]
