"""Groups: named member collections with their own app grants."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, TimestampMixin, UUIDMixin


class Group(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "groups"
    __table_args__ = (
        sa.UniqueConstraint("org_id", "name", name="uq_groups_org_name"),
    )

    org_id: uuid.UUID = Field(foreign_key="organizations.id", ondelete="CASCADE", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None


class GroupMember(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "group_members"
    __table_args__ = (
        sa.UniqueConstraint("group_id", "member_id", name="uq_group_members"),
    )

    group_id: uuid.UUID = Field(foreign_key="groups.id", ondelete="CASCADE", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="org_members.id", ondelete="CASCADE", nullable=False, index=True)


class GroupAppAccess(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "group_app_access"
    __table_args__ = (
        sa.UniqueConstraint("group_id", "app_slug", name="uq_group_app_access"),
    )

    group_id: uuid.UUID = Field(foreign_key="groups.id", ondelete="CASCADE", nullable=False, index=True)
    app_slug: str = Field(nullable=False)
