"""Per-organization defaults for new quizzes."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin

DEFAULT_CATEGORIES_COUNT = 6
DEFAULT_QUESTIONS_PER_CATEGORY = 10


class OrgSettings(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "org_settings"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, unique=True)
    default_categories_count: int = Field(default=DEFAULT_CATEGORIES_COUNT, nullable=False)
    default_questions_per_category: int = Field(
        default=DEFAULT_QUESTIONS_PER_CATEGORY, nullable=False
    )
