"""
Audit trail for mutating actions.

Rows are written in the caller's session and committed with the request
transaction, so a failed request leaves no audit entry behind.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import RequestContext
from app.models.audit import AuditLog


async def record(
    session: AsyncSession,
    ctx: RequestContext,
    action: str,
    entity_type: str,
    entity_id: Optional[uuid.UUID | str] = None,
    payload: Optional[dict[str, Any]] = None,
) -> AuditLog:
    entry = AuditLog(
        org_id=ctx.org_id,
        user_id=ctx.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        payload=payload or {},
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_entries(
    session: AsyncSession, org_id: uuid.UUID, limit: int = 50
) -> list[AuditLog]:
    result = await session.execute(
        select(AuditLog)
        .where(AuditLog.org_id == org_id)
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
