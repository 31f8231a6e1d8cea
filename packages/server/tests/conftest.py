"""
Shared fixtures: an in-memory SQLite database, an ASGI client bound to it,
and small factories for tenants, members and request contexts.
"""

from __future__ import annotations

import os

# Must be set before app modules build the engine from settings
os.environ.setdefault("QZ_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("QZ_LOG_FORMAT", "text")

import uuid
from datetime import datetime
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.auth import RequestContext, create_jwt
from app.core.database import get_session
from app.main import app
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.user import User
from quizory_shared.schemas.common import Role, SubscriptionPlan


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def no_redis():
    """Token revocation never reaches a real Redis in tests."""
    with patch("app.core.auth.is_jti_revoked", new=AsyncMock(return_value=False)), patch(
        "app.api.v1.auth.revoke_jti", new=AsyncMock()
    ) as revoke:
        yield revoke


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_org(session):
    async def _make_org(
        plan: SubscriptionPlan = SubscriptionPlan.FREE,
        trial_ends_at: Optional[datetime] = None,
        name: str = "Test League",
    ) -> Organization:
        org = Organization(name=name, subscription_plan=plan.value, trial_ends_at=trial_ends_at)
        session.add(org)
        await session.commit()
        return org

    return _make_org


@pytest.fixture
def add_member(session):
    async def _add_member(
        org: Organization, role: Role = Role.USER, email: Optional[str] = None
    ) -> User:
        user = User(
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            display_name="Member",
            password_hash=None,
        )
        session.add(user)
        await session.flush()
        session.add(Membership(user_id=user.id, org_id=org.id, role=role.value))
        await session.commit()
        return user

    return _add_member


def context_for(user: User, org: Organization, role: Role) -> RequestContext:
    return RequestContext(user_id=user.id, org_id=org.id, role=role)


def bearer(user: User) -> dict[str, str]:
    token, _jti = create_jwt(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def ctx_for():
    return context_for


@pytest.fixture
def auth_headers():
    return bearer
