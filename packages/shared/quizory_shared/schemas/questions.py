"""Question bank schemas (premium feature)."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import QuestionType


class QuestionOptionIn(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)
    is_correct: bool = False
    order_index: int = 0
    match_key: Optional[str] = Field(None, max_length=200)  # pairs options of a matching question


class QuestionOptionRead(BaseModel):
    id: UUID
    text: str
    is_correct: bool
    order_index: int
    match_key: Optional[str] = None

    model_config = {"from_attributes": True}


class QuestionCreate(BaseModel):
    category_id: UUID
    type: QuestionType
    text: str = Field(..., min_length=1, max_length=4000)
    image_url: Optional[str] = Field(None, max_length=2000)
    order_index: int = 0
    options: List[QuestionOptionIn] = Field(default_factory=list)


class QuestionUpdate(BaseModel):
    """Partial update; a non-null ``options`` list replaces all existing options."""

    text: Optional[str] = Field(None, min_length=1, max_length=4000)
    image_url: Optional[str] = Field(None, max_length=2000)
    order_index: Optional[int] = None
    options: Optional[List[QuestionOptionIn]] = None


class QuestionRead(BaseModel):
    id: UUID
    org_id: UUID
    category_id: UUID
    type: QuestionType
    text: str
    image_url: Optional[str] = None
    order_index: int
    options: List[QuestionOptionRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
