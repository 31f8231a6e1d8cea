"""Organization (tenant root) model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    subscription_plan: str = Field(default="free", nullable=False)  # free | trial | premium
    # Non-null only while subscription_plan == "trial"
    trial_ends_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    primary_color: str = Field(default="#5E35B1", nullable=False)
