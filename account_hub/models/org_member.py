"""Organization membership and per-member app grants."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class OrgMember(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "org_members"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "org_id", name="uq_org_members_user_org"),
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", ondelete="CASCADE", nullable=False, index=True)
    role: str = Field(nullable=False, default="MEMBER")  # OWNER | ADMIN | MEMBER | EXTERNAL


class MemberAppAccess(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    """Direct grant; only consulted while the member is EXTERNAL."""

    __tablename__ = "member_app_access"
    __table_args__ = (
        sa.UniqueConstraint("member_id", "app_slug", name="uq_member_app_access"),
    )

    member_id: uuid.UUID = Field(foreign_key="org_members.id", ondelete="CASCADE", nullable=False, index=True)
    app_slug: str = Field(nullable=False)
