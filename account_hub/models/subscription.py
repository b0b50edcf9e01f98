"""Subscription model: per-org, per-app billing status."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Subscription(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"
    __table_args__ = (
        sa.UniqueConstraint("org_id", "app_slug", name="uq_subscriptions_org_app"),
    )

    org_id: uuid.UUID = Field(foreign_key="organizations.id", ondelete="CASCADE", nullable=False, index=True)
    app_slug: str = Field(nullable=False)
    status: str = Field(nullable=False)  # active | trialing | past_due | canceled (others stored verbatim)
    cancel_at_period_end: bool = Field(default=False, nullable=False)
    current_period_end: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
