"""Team and team alias models (org-scoped)."""

from typing import Optional
import uuid

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import TenantMixin, TimestampMixin, UUIDMixin


class Team(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "teams"

    name: str = Field(nullable=False, index=True)


class TeamAlias(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "team_aliases"
    __table_args__ = (
        UniqueConstraint("org_id", "quiz_id", "alias", name="uq_team_alias"),
    )

    team_id: uuid.UUID = Field(foreign_key="teams.id", nullable=False, index=True)
    quiz_id: Optional[uuid.UUID] = Field(default=None, foreign_key="quizzes.id")
    alias: str = Field(nullable=False)
