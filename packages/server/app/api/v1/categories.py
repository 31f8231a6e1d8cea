"""
Category and league endpoints.

Both resources share one shape (an org-scoped name), so their routers are
built by the same factory. Every league endpoint additionally requires the
``leagues`` feature.

GET    /api/v1/orgs/{orgId}/categories          - Search (paginated)
POST   /api/v1/orgs/{orgId}/categories          - Create (Admin)
GET    /api/v1/orgs/{orgId}/categories/{id}     - Get
PUT    /api/v1/orgs/{orgId}/categories/{id}     - Rename (Admin)
DELETE /api/v1/orgs/{orgId}/categories/{id}     - Soft delete (Admin)
(same routes under /leagues)
"""

from __future__ import annotations

import uuid
from typing import Optional, Type

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, ensure_at_least, require_user
from app.core.database import get_session
from app.models.category import Category
from app.models.league import League
from app.services import catalog, subscriptions
from quizory_shared.schemas.catalog import CategoryRead, LeagueRead, NamedCreate
from quizory_shared.schemas.common import Feature, Page, Role


def build_named_router(
    model: Type[Category] | Type[League],
    read_schema: Type[CategoryRead],
    feature: Optional[Feature] = None,
) -> APIRouter:
    async def reader(
        ctx: RequestContext = Depends(require_user),
        session: AsyncSession = Depends(get_session),
    ) -> RequestContext:
        if feature is not None:
            await subscriptions.enforce_feature(ctx, session, feature)
        return ctx

    async def writer(
        ctx: RequestContext = Depends(reader),
    ) -> RequestContext:
        ensure_at_least(ctx, Role.ADMIN)
        return ctx

    router = APIRouter()

    @router.get("", response_model=Page[read_schema])
    async def list_items(
        search: Optional[str] = Query(None, max_length=200),
        page: int = Query(1, ge=1),
        page_size: int = Query(50, ge=1, le=200),
        ctx: RequestContext = Depends(reader),
        session: AsyncSession = Depends(get_session),
    ):
        items, total = await catalog.list_named(session, model, ctx.org_id, search, page, page_size)
        return Page[read_schema](
            items=[read_schema.model_validate(i) for i in items],
            total=total,
            page=page,
            page_size=page_size,
        )

    @router.post("", response_model=read_schema, status_code=201)
    async def create_item(
        body: NamedCreate,
        ctx: RequestContext = Depends(writer),
        session: AsyncSession = Depends(get_session),
    ):
        return await catalog.create_named(ctx, session, model, body.name)

    @router.get("/{itemId}", response_model=read_schema)
    async def get_item(
        itemId: uuid.UUID,
        ctx: RequestContext = Depends(reader),
        session: AsyncSession = Depends(get_session),
    ):
        return await catalog.get_or_404(session, model, itemId, ctx.org_id)

    @router.put("/{itemId}", response_model=read_schema)
    async def update_item(
        itemId: uuid.UUID,
        body: NamedCreate,
        ctx: RequestContext = Depends(writer),
        session: AsyncSession = Depends(get_session),
    ):
        return await catalog.rename_named(ctx, session, model, itemId, body.name)

    @router.delete("/{itemId}", status_code=204)
    async def delete_item(
        itemId: uuid.UUID,
        ctx: RequestContext = Depends(writer),
        session: AsyncSession = Depends(get_session),
    ):
        await catalog.delete_named(ctx, session, model, itemId)

    return router


categories_router = build_named_router(Category, CategoryRead)
leagues_router = build_named_router(League, LeagueRead, Feature.LEAGUES)
