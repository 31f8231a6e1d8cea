"""Help type catalog and per-quiz help usage (append-only)."""

import uuid

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import TenantMixin, TimestampMixin, UUIDMixin


class HelpType(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "help_types"

    name: str = Field(nullable=False)
    behavior: str = Field(nullable=False)  # double_score | marker_only


class HelpUsage(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "help_usages"
    __table_args__ = (
        UniqueConstraint("org_id", "quiz_id", "team_id", "help_type_id", name="uq_help_usage"),
    )

    quiz_id: uuid.UUID = Field(foreign_key="quizzes.id", nullable=False, index=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", nullable=False)
    help_type_id: uuid.UUID = Field(foreign_key="help_types.id", nullable=False)
