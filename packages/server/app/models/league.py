"""League model (org-scoped, premium feature)."""

from sqlmodel import Field, SQLModel

from .base import TenantMixin, TimestampMixin, UUIDMixin


class League(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "leagues"

    name: str = Field(nullable=False, index=True)
