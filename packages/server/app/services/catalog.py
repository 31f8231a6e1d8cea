"""
Catalog service: teams (with aliases), categories, leagues and help types.

Every lookup is scoped to the caller's organization and hides soft-deleted
rows; an id from another tenant behaves exactly like a missing one.
"""

from __future__ import annotations

import uuid
from typing import Optional, Type, TypeVar

import structlog
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.core.auth import RequestContext
from app.core.errors import ConflictError, NotFoundError
from app.models.category import Category
from app.models.help import HelpType
from app.models.league import League
from app.models.quiz import Quiz
from app.models.team import Team, TeamAlias
from app.services import audit
from quizory_shared.schemas.catalog import (
    HelpTypeCreate,
    HelpTypeUpdate,
    TeamAliasCreate,
    TeamAliasRead,
    TeamRead,
)

log = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=SQLModel)

DEFAULT_PAGE_SIZE = 50


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def get_or_404(
    session: AsyncSession, model: Type[ModelT], entity_id: uuid.UUID, org_id: uuid.UUID
) -> ModelT:
    entity = await session.get(model, entity_id)
    if not entity or entity.org_id != org_id or entity.is_deleted:
        raise NotFoundError()
    return entity


async def paginate(session: AsyncSession, stmt, page: int, page_size: int):
    total = (
        await session.execute(select(func.count()).select_from(stmt.subquery()))
    ).scalar_one()
    result = await session.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    return list(result.scalars().all()), total


async def soft_delete(
    ctx: RequestContext, session: AsyncSession, model: Type[ModelT], entity_id: uuid.UUID
) -> None:
    entity = await get_or_404(session, model, entity_id, ctx.org_id)
    entity.is_deleted = True
    session.add(entity)
    await session.flush()
    await audit.record(session, ctx, f"{model.__tablename__}.deleted", model.__tablename__, entity_id)


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

async def team_read(session: AsyncSession, team: Team) -> TeamRead:
    result = await session.execute(
        select(TeamAlias)
        .where(TeamAlias.team_id == team.id, TeamAlias.is_deleted == False)  # noqa: E712
        .order_by(TeamAlias.alias)
    )
    return TeamRead(
        id=team.id,
        org_id=team.org_id,
        name=team.name,
        aliases=[TeamAliasRead.model_validate(a) for a in result.scalars().all()],
        created_at=team.created_at,
        updated_at=team.updated_at,
    )


async def list_teams(
    session: AsyncSession,
    org_id: uuid.UUID,
    query: Optional[str] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[TeamRead], int]:
    """Teams ordered by name; ``query`` matches the name or any alias."""
    stmt = select(Team).where(Team.org_id == org_id, Team.is_deleted == False)  # noqa: E712
    if query:
        pattern = f"%{query}%"
        alias_team_ids = select(TeamAlias.team_id).where(
            TeamAlias.org_id == org_id,
            TeamAlias.is_deleted == False,  # noqa: E712
            TeamAlias.alias.ilike(pattern),
        )
        stmt = stmt.where(or_(Team.name.ilike(pattern), Team.id.in_(alias_team_ids)))

    teams, total = await paginate(session, stmt.order_by(Team.name), page, page_size)
    return [await team_read(session, t) for t in teams], total


async def create_team(ctx: RequestContext, session: AsyncSession, name: str) -> Team:
    team = Team(org_id=ctx.org_id, name=name)
    session.add(team)
    await session.flush()
    await audit.record(session, ctx, "team.created", "team", team.id, {"name": name})
    log.info("team.created", team_id=str(team.id), org_id=str(ctx.org_id))
    return team


async def rename_team(
    ctx: RequestContext, session: AsyncSession, team_id: uuid.UUID, name: str
) -> Team:
    team = await get_or_404(session, Team, team_id, ctx.org_id)
    team.name = name
    session.add(team)
    await session.flush()
    await audit.record(session, ctx, "team.updated", "team", team.id, {"name": name})
    return team


async def delete_team(ctx: RequestContext, session: AsyncSession, team_id: uuid.UUID) -> None:
    await soft_delete(ctx, session, Team, team_id)


async def add_alias(
    ctx: RequestContext, session: AsyncSession, team_id: uuid.UUID, req: TeamAliasCreate
) -> TeamAlias:
    """Attach an alias to a team, optionally only for one quiz."""
    await get_or_404(session, Team, team_id, ctx.org_id)
    if req.quiz_id is not None:
        await get_or_404(session, Quiz, req.quiz_id, ctx.org_id)

    existing = await session.execute(
        select(TeamAlias).where(
            TeamAlias.org_id == ctx.org_id,
            TeamAlias.alias == req.alias,
            TeamAlias.quiz_id == req.quiz_id if req.quiz_id else TeamAlias.quiz_id.is_(None),
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError("alias_exists")

    alias = TeamAlias(org_id=ctx.org_id, team_id=team_id, quiz_id=req.quiz_id, alias=req.alias)
    session.add(alias)
    await session.flush()
    await audit.record(session, ctx, "team.alias_added", "team", team_id, {"alias": req.alias})
    return alias


# ---------------------------------------------------------------------------
# Categories & leagues (same shape, different tables)
# ---------------------------------------------------------------------------

async def list_named(
    session: AsyncSession,
    model: Type[Category] | Type[League],
    org_id: uuid.UUID,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
):
    stmt = select(model).where(model.org_id == org_id, model.is_deleted == False)  # noqa: E712
    if search:
        stmt = stmt.where(model.name.ilike(f"%{search}%"))
    return await paginate(session, stmt.order_by(model.name), page, page_size)


async def create_named(
    ctx: RequestContext, session: AsyncSession, model: Type[Category] | Type[League], name: str
):
    entity = model(org_id=ctx.org_id, name=name)
    session.add(entity)
    await session.flush()
    await audit.record(session, ctx, f"{model.__tablename__}.created", model.__tablename__, entity.id)
    return entity


async def rename_named(
    ctx: RequestContext,
    session: AsyncSession,
    model: Type[Category] | Type[League],
    entity_id: uuid.UUID,
    name: str,
):
    entity = await get_or_404(session, model, entity_id, ctx.org_id)
    entity.name = name
    session.add(entity)
    await session.flush()
    return entity


async def delete_named(
    ctx: RequestContext,
    session: AsyncSession,
    model: Type[Category] | Type[League],
    entity_id: uuid.UUID,
) -> None:
    await soft_delete(ctx, session, model, entity_id)


# ---------------------------------------------------------------------------
# Help types
# ---------------------------------------------------------------------------

async def list_help_types(session: AsyncSession, org_id: uuid.UUID) -> list[HelpType]:
    result = await session.execute(
        select(HelpType)
        .where(HelpType.org_id == org_id, HelpType.is_deleted == False)  # noqa: E712
        .order_by(HelpType.name)
    )
    return list(result.scalars().all())


async def create_help_type(
    ctx: RequestContext, session: AsyncSession, req: HelpTypeCreate
) -> HelpType:
    help_type = HelpType(org_id=ctx.org_id, name=req.name, behavior=req.behavior.value)
    session.add(help_type)
    await session.flush()
    await audit.record(
        session, ctx, "help_type.created", "help_type", help_type.id,
        {"behavior": req.behavior.value},
    )
    return help_type


async def update_help_type(
    ctx: RequestContext, session: AsyncSession, help_type_id: uuid.UUID, req: HelpTypeUpdate
) -> HelpType:
    help_type = await get_or_404(session, HelpType, help_type_id, ctx.org_id)
    if req.name is not None:
        help_type.name = req.name
    if req.behavior is not None:
        help_type.behavior = req.behavior.value
    session.add(help_type)
    await session.flush()
    return help_type


async def delete_help_type(
    ctx: RequestContext, session: AsyncSession, help_type_id: uuid.UUID
) -> None:
    await soft_delete(ctx, session, HelpType, help_type_id)
