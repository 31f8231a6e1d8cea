from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from .common import QuizStatus
from .quizzes import RankingItem


class QuizSummary(BaseModel):
    quiz_id: UUID
    name: str
    date: datetime
    location: str
    status: QuizStatus
    team_count: int
    category_count: int
    winner_team_id: Optional[UUID] = None
    winner_points: Optional[int] = None


class LeagueSummary(BaseModel):
    league_id: UUID
    name: str
    quiz_count: int
    top_teams: List[RankingItem]


class TeamHistoryItem(BaseModel):
    quiz_id: UUID
    quiz_name: str
    date: datetime
    rank: int
    points: int


class CategoryStats(BaseModel):
    category_id: UUID
    name: str
    average_points: float  # per quiz, summed over teams
    quiz_count: int
