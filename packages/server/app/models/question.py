"""Question bank models: questions and their answer options."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TenantMixin, TimestampMixin, UUIDMixin


class Question(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "questions"

    category_id: uuid.UUID = Field(foreign_key="categories.id", nullable=False, index=True)
    type: str = Field(nullable=False)  # open_answer | multiple_choice | true_false | matching
    text: str = Field(nullable=False)
    image_url: Optional[str] = None
    order_index: int = Field(default=0, nullable=False)


class QuestionOption(UUIDMixin, SQLModel, table=True):
    """Owned by its question; replaced wholesale when the question's options change."""

    __tablename__ = "question_options"

    question_id: uuid.UUID = Field(foreign_key="questions.id", nullable=False, index=True)
    text: str = Field(nullable=False)
    is_correct: bool = Field(default=False, nullable=False)
    order_index: int = Field(default=0, nullable=False)
    match_key: Optional[str] = None
