"""Schemas for the org-scoped catalog: teams, categories, leagues, help types."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import HelpBehavior


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class TeamUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class TeamAliasCreate(BaseModel):
    alias: str = Field(..., min_length=1, max_length=200)
    quiz_id: Optional[UUID] = None  # null = alias valid for every quiz


class TeamAliasRead(BaseModel):
    id: UUID
    team_id: UUID
    quiz_id: Optional[UUID] = None
    alias: str

    model_config = {"from_attributes": True}


class TeamRead(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    aliases: List[TeamAliasRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Categories & leagues
# ---------------------------------------------------------------------------

class NamedCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class CategoryRead(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LeagueRead(CategoryRead):
    pass


# ---------------------------------------------------------------------------
# Help types
# ---------------------------------------------------------------------------

class HelpTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    behavior: HelpBehavior


class HelpTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    behavior: Optional[HelpBehavior] = None


class HelpTypeRead(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    behavior: HelpBehavior
    created_at: datetime

    model_config = {"from_attributes": True}
