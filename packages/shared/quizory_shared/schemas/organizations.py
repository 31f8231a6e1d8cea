"""
Organization-related Pydantic schemas shared between server and frontend.

Covers: org read/update, membership management, subscription summary and
quiz defaults.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .common import Language, Role, SubscriptionPlan


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------

class OrgUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    primary_color: Optional[str] = Field(
        None,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Brand colour used on shared leaderboards",
    )


class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    subscription_plan: SubscriptionPlan
    trial_ends_at: Optional[datetime] = None
    primary_color: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class MemberInviteRequest(BaseModel):
    email: EmailStr
    display_name: Optional[str] = Field(None, max_length=200)
    role: Role = Role.USER


class MemberRoleUpdateRequest(BaseModel):
    role: Role


class MemberResponse(BaseModel):
    user_id: uuid.UUID
    email: str
    display_name: str
    role: Role
    created_at: datetime


class OrgDetailResponse(BaseModel):
    org: OrgResponse
    members: list[MemberResponse]


class LanguageUpdateRequest(BaseModel):
    preferred_language: Language


# ---------------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------------

class SubscriptionFeatures(BaseModel):
    leagues: bool
    question_bank: bool
    members: bool
    share: bool
    custom_branding: bool


class SubscriptionResponse(BaseModel):
    plan: SubscriptionPlan  # effective plan, not the stored one
    is_trial_active: bool
    trial_ends_at: Optional[datetime] = None
    quizzes_used_this_month: int
    quizzes_limit_per_month: Optional[int] = None  # null = unlimited
    member_count: int
    member_limit: int
    features: SubscriptionFeatures


# ---------------------------------------------------------------------------
# Quiz defaults
# ---------------------------------------------------------------------------

class OrgSettingsUpdate(BaseModel):
    default_categories_count: Optional[int] = Field(None, ge=1, le=50)
    default_questions_per_category: Optional[int] = Field(None, ge=1, le=100)


class OrgSettingsResponse(BaseModel):
    org_id: uuid.UUID
    default_categories_count: int
    default_questions_per_category: int
    updated_at: datetime

    model_config = {"from_attributes": True}
