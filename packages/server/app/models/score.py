"""Score entry model: one row per (quiz, team, category) within an org."""

import uuid

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import TenantMixin, TimestampMixin, UUIDMixin


class ScoreEntry(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "score_entries"
    __table_args__ = (
        UniqueConstraint("org_id", "quiz_id", "team_id", "category_id", name="uq_score_entry"),
    )

    quiz_id: uuid.UUID = Field(foreign_key="quizzes.id", nullable=False, index=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", nullable=False, index=True)
    category_id: uuid.UUID = Field(foreign_key="categories.id", nullable=False)
    points: int = Field(default=0, nullable=False)  # corrections may go negative
    bonus_points: int = Field(default=0, nullable=False)
    notes: str = Field(default="", nullable=False)
    is_locked: bool = Field(default=False, nullable=False)
