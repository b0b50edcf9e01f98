"""Entity model: a business sub-profile (legal entity, billing identity)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Entity(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "entities"
    __table_args__ = (
        sa.UniqueConstraint("org_id", "slug", name="uq_entities_org_slug"),
        # At most one default per org
        sa.Index(
            "uq_entities_one_default",
            "org_id",
            unique=True,
            postgresql_where=sa.text("is_default"),
            sqlite_where=sa.text("is_default"),
        ),
    )

    org_id: uuid.UUID = Field(foreign_key="organizations.id", ondelete="CASCADE", nullable=False, index=True)
    name: str = Field(nullable=False)
    slug: str = Field(nullable=False)
    is_default: bool = Field(default=False, nullable=False)

    legal_name: Optional[str] = None
    tax_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
