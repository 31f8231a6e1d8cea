"""Public leaderboard share token."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class ShareToken(UUIDMixin, SQLModel, table=True):
    __tablename__ = "share_tokens"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    quiz_id: uuid.UUID = Field(foreign_key="quizzes.id", nullable=False)
    token: str = Field(unique=True, index=True, nullable=False)
    expires_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
