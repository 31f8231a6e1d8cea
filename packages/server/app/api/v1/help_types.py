"""
Help type endpoints.

GET    /api/v1/orgs/{orgId}/help-types           - List
POST   /api/v1/orgs/{orgId}/help-types           - Create (Admin)
PUT    /api/v1/orgs/{orgId}/help-types/{id}      - Update (Admin)
DELETE /api/v1/orgs/{orgId}/help-types/{id}      - Soft delete (Admin)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import RequestContext, require_admin, require_user
from app.core.database import get_session
from app.services import catalog
from quizory_shared.schemas.catalog import HelpTypeCreate, HelpTypeRead, HelpTypeUpdate

router = APIRouter()


@router.get("", response_model=list[HelpTypeRead])
async def list_help_types(
    ctx: RequestContext = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await catalog.list_help_types(session, ctx.org_id)


@router.post("", response_model=HelpTypeRead, status_code=201)
async def create_help_type(
    body: HelpTypeCreate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await catalog.create_help_type(ctx, session, body)


@router.put("/{helpTypeId}", response_model=HelpTypeRead)
async def update_help_type(
    helpTypeId: uuid.UUID,
    body: HelpTypeUpdate,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await catalog.update_help_type(ctx, session, helpTypeId, body)


@router.delete("/{helpTypeId}", status_code=204)
async def delete_help_type(
    helpTypeId: uuid.UUID,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await catalog.delete_help_type(ctx, session, helpTypeId)
