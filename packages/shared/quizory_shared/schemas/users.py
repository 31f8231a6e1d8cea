"""Account schemas: registration, login and the current-user profile."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, UUID4

from .common import Language, Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = Field(default=None, max_length=200)
    organization_name: Optional[str] = Field(default=None, max_length=100)
    preferred_language: Language = Language.SR


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class AuthResponse(BaseModel):
    """Returned by register/login. The token is also set as a session cookie."""
    token: str
    user_id: UUID4
    email: str
    display_name: str
    preferred_language: Language
    organization_id: UUID4
    role: Role


class MembershipSummary(BaseModel):
    org_id: UUID4
    org_name: str
    role: Role


class MeResponse(BaseModel):
    user_id: UUID4
    email: str
    display_name: str
    preferred_language: Language
    created_at: datetime
    memberships: List[MembershipSummary] = Field(default_factory=list)
