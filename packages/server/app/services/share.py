"""
Public leaderboard sharing.

A share token is an unguessable random string bound to one quiz. Anyone
holding it can read that quiz's ranking until the optional expiry passes.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import RequestContext
from app.core.config import get_settings
from app.core.errors import NotFoundError
from app.models.base import as_utc
from app.models.organization import Organization
from app.models.quiz import Quiz
from app.models.share import ShareToken
from app.services import audit, scoring, subscriptions
from app.services.quizzes import get_quiz_or_404
from quizory_shared.schemas.common import Feature
from quizory_shared.schemas.quizzes import SharedLeaderboard, ShareTokenResponse

log = structlog.get_logger()

TOKEN_BYTES = 24


def share_url(token: str) -> str:
    return f"{get_settings().public_base_url.rstrip('/')}/api/v1/share/{token}"


async def create_share_token(
    ctx: RequestContext,
    session: AsyncSession,
    quiz_id: uuid.UUID,
    expires_at: Optional[datetime] = None,
) -> ShareTokenResponse:
    await subscriptions.enforce_feature(ctx, session, Feature.SHARE)
    quiz = await get_quiz_or_404(session, quiz_id, ctx.org_id)

    record = ShareToken(
        org_id=ctx.org_id,
        quiz_id=quiz.id,
        token=secrets.token_hex(TOKEN_BYTES),
        expires_at=as_utc(expires_at),
    )
    session.add(record)
    await session.flush()
    await audit.record(session, ctx, "share.created", "quiz", quiz.id)

    log.info("share.created", quiz_id=str(quiz.id), org_id=str(ctx.org_id))
    return ShareTokenResponse(
        token=record.token, url=share_url(record.token), expires_at=record.expires_at
    )


async def get_shared_leaderboard(
    session: AsyncSession, token: str, now: Optional[datetime] = None
) -> SharedLeaderboard:
    """Resolve a token to its leaderboard; unknown and expired tokens are both 404."""
    now = now or datetime.now(timezone.utc)
    result = await session.execute(select(ShareToken).where(ShareToken.token == token))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError()
    expires_at = as_utc(record.expires_at)
    if expires_at is not None and expires_at < now:
        raise NotFoundError()

    quiz = await session.get(Quiz, record.quiz_id)
    if not quiz or quiz.is_deleted:
        raise NotFoundError()
    org = await session.get(Organization, record.org_id)

    return SharedLeaderboard(
        quiz_name=quiz.name,
        quiz_date=quiz.date,
        primary_color=org.primary_color if org else None,
        rankings=await scoring.build_ranking(session, quiz.id, record.org_id),
    )
