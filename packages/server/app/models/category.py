"""Category model (org-scoped)."""

from sqlmodel import Field, SQLModel

from .base import TenantMixin, TimestampMixin, UUIDMixin


class Category(UUIDMixin, TenantMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "categories"

    name: str = Field(nullable=False, index=True)
