"""Initial account hub schema: users, organizations, memberships, groups,
entities, invitations and subscriptions.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True)


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, server_default=sa.func.now())


def _fk(name: str, target: str, ondelete: str = "CASCADE", nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable, index=True)


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("image", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=True),
        _ts("created_at"),
    )

    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(), nullable=False, index=True),
        sa.Column("slug", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("type", sa.String(), nullable=False, server_default="BUSINESS"),
        _ts("created_at"),
        _ts("updated_at"),
        sa.CheckConstraint("type IN ('INDIVIDUAL', 'BUSINESS')", name="ck_organizations_type"),
    )

    op.create_table(
        "org_members",
        _id(),
        _fk("user_id", "users.id"),
        _fk("org_id", "organizations.id"),
        sa.Column("role", sa.String(), nullable=False, server_default="MEMBER"),
        _ts("created_at"),
        sa.UniqueConstraint("user_id", "org_id", name="uq_org_members_user_org"),
        sa.CheckConstraint(
            "role IN ('OWNER', 'ADMIN', 'MEMBER', 'EXTERNAL')", name="ck_org_members_role"
        ),
    )

    op.create_table(
        "member_app_access",
        _id(),
        _fk("member_id", "org_members.id"),
        sa.Column("app_slug", sa.String(), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("member_id", "app_slug", name="uq_member_app_access"),
    )

    op.create_table(
        "groups",
        _id(),
        _fk("org_id", "organizations.id"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.UniqueConstraint("org_id", "name", name="uq_groups_org_name"),
    )

    op.create_table(
        "group_members",
        _id(),
        _fk("group_id", "groups.id"),
        _fk("member_id", "org_members.id"),
        _ts("created_at"),
        sa.UniqueConstraint("group_id", "member_id", name="uq_group_members"),
    )

    op.create_table(
        "group_app_access",
        _id(),
        _fk("group_id", "groups.id"),
        sa.Column("app_slug", sa.String(), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("group_id", "app_slug", name="uq_group_app_access"),
    )

    op.create_table(
        "entities",
        _id(),
        _fk("org_id", "organizations.id"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("legal_name", sa.String(), nullable=True),
        sa.Column("tax_id", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.UniqueConstraint("org_id", "slug", name="uq_entities_org_slug"),
    )
    # At most one default entity per org
    op.create_index(
        "uq_entities_one_default",
        "entities",
        ["org_id"],
        unique=True,
        postgresql_where=sa.text("is_default"),
        sqlite_where=sa.text("is_default"),
    )

    op.create_table(
        "invitations",
        _id(),
        _fk("org_id", "organizations.id"),
        sa.Column("email", sa.String(), nullable=False, index=True),
        sa.Column("role", sa.String(), nullable=False, server_default="MEMBER"),
        sa.Column("app_slugs", sa.String(), nullable=True),
        sa.Column("token", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _fk("invited_by", "users.id", ondelete="SET NULL", nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("email", "org_id", name="uq_invitations_email_org"),
    )

    op.create_table(
        "subscriptions",
        _id(),
        _fk("org_id", "organizations.id"),
        sa.Column("app_slug", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("cancel_at_period_end", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.UniqueConstraint("org_id", "app_slug", name="uq_subscriptions_org_app"),
    )


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in (
        "subscriptions",
        "invitations",
        "entities",
        "group_app_access",
        "group_members",
        "groups",
        "member_app_access",
        "org_members",
        "organizations",
        "users",
    ):
        op.drop_table(table)
