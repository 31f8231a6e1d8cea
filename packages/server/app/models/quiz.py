"""Quiz model and its participation join tables."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TenantMixin, TimestampMixin, UUIDMixin


class Quiz(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "quizzes"

    name: str = Field(nullable=False)
    date: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    location: str = Field(default="", nullable=False)
    status: str = Field(default="draft", nullable=False)  # draft | live | finished
    league_id: Optional[uuid.UUID] = Field(default=None, foreign_key="leagues.id", index=True)


class QuizTeam(SQLModel, table=True):
    __tablename__ = "quiz_teams"

    quiz_id: uuid.UUID = Field(foreign_key="quizzes.id", primary_key=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)


class QuizCategory(SQLModel, table=True):
    __tablename__ = "quiz_categories"

    quiz_id: uuid.UUID = Field(foreign_key="quizzes.id", primary_key=True)
    category_id: uuid.UUID = Field(foreign_key="categories.id", primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
