"""
Public leaderboard endpoint (no authentication).

GET /api/v1/share/{token} - Ranking for the quiz the token points at
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import share as share_service
from quizory_shared.schemas.quizzes import SharedLeaderboard

router = APIRouter()


@router.get("/{token}", response_model=SharedLeaderboard)
async def get_shared_leaderboard(
    token: str,
    session: AsyncSession = Depends(get_session),
):
    return await share_service.get_shared_leaderboard(session, token)
