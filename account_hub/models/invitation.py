"""Invitation model: a pending, time-boxed membership grant."""

from datetime import datetime
from typing import Iterable, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


def encode_app_slugs(slugs: Optional[Iterable[str]]) -> Optional[str]:
    """Comma-join slugs for storage; empty input is stored as NULL."""
    ordered = decode_app_slugs(",".join(slugs or ()))
    return ",".join(ordered) or None


def decode_app_slugs(raw: Optional[str]) -> list[str]:
    """Split a stored slug string into an ordered list without duplicates."""
    seen: list[str] = []
    for part in (raw or "").split(","):
        slug = part.strip()
        if slug and slug not in seen:
            seen.append(slug)
    return seen


class Invitation(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "invitations"
    __table_args__ = (
        sa.UniqueConstraint("email", "org_id", name="uq_invitations_email_org"),
    )

    org_id: uuid.UUID = Field(foreign_key="organizations.id", ondelete="CASCADE", nullable=False, index=True)
    email: str = Field(nullable=False, index=True)
    role: str = Field(nullable=False, default="MEMBER")
    app_slugs: Optional[str] = None  # comma-joined; only set for EXTERNAL
    token: str = Field(unique=True, index=True, nullable=False)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    invited_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
