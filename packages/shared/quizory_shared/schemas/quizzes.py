"""Quiz, scoring, help usage and sharing schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import QuizStatus


# ---------------------------------------------------------------------------
# Quiz CRUD
# ---------------------------------------------------------------------------

class QuizCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    date: datetime
    location: str = ""
    league_id: Optional[UUID] = None
    team_ids: List[UUID] = Field(default_factory=list)
    category_ids: List[UUID] = Field(default_factory=list)


class QuizStatusUpdate(BaseModel):
    status: QuizStatus


class QuizRead(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    date: datetime
    location: str
    status: QuizStatus
    league_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# Valid quiz status transitions
QUIZ_TRANSITIONS: dict[QuizStatus, list[QuizStatus]] = {
    QuizStatus.DRAFT: [QuizStatus.LIVE],
    QuizStatus.LIVE: [QuizStatus.FINISHED],
    QuizStatus.FINISHED: [QuizStatus.LIVE],
}


# ---------------------------------------------------------------------------
# Scores & helps
# ---------------------------------------------------------------------------

class ScoreUpdate(BaseModel):
    team_id: UUID
    category_id: UUID
    points: int
    bonus_points: int = 0
    notes: str = ""
    is_locked: bool = False


class ScoreRead(BaseModel):
    id: UUID
    quiz_id: UUID
    team_id: UUID
    category_id: UUID
    points: int
    bonus_points: int
    notes: str
    is_locked: bool

    model_config = {"from_attributes": True}


class HelpApply(BaseModel):
    team_id: UUID
    help_type_id: UUID


class HelpUsageRead(BaseModel):
    id: UUID
    quiz_id: UUID
    team_id: UUID
    help_type_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class RankingItem(BaseModel):
    rank: int
    team_id: UUID
    team_name: str = ""
    points: int


# ---------------------------------------------------------------------------
# Public sharing
# ---------------------------------------------------------------------------

class ShareCreate(BaseModel):
    expires_at: Optional[datetime] = None


class ShareTokenResponse(BaseModel):
    token: str
    url: str
    expires_at: Optional[datetime] = None


class SharedLeaderboard(BaseModel):
    quiz_name: str
    quiz_date: datetime
    primary_color: Optional[str] = None
    rankings: List[RankingItem]
