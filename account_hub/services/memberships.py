"""
Membership service: member lookups, listing, direct app grants, role changes
and removal.

Authorization rules live here, next to the data they protect:

- non-members never learn an organization exists (NotFound)
- the last OWNER can never be demoted or removed
- an EXTERNAL member always holds at least one app grant
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.catalog import validate_app_slugs
from account_hub.core.errors import Forbidden, InvariantViolation, NotFound, ValidationFailed
from account_hub.models.group import Group, GroupAppAccess, GroupMember
from account_hub.models.org_member import MemberAppAccess, OrgMember
from account_hub.models.organization import Organization
from account_hub.models.user import User

from account_hub_shared.schemas.common import ASSIGNABLE_ROLES, MANAGER_ROLES, Role, UserSummary
from account_hub_shared.schemas.members import GroupRef, MemberResponse

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Store queries
# ---------------------------------------------------------------------------

async def get_membership(
    org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> Optional[OrgMember]:
    result = await session.execute(
        select(OrgMember).where(OrgMember.org_id == org_id, OrgMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def require_membership(
    org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> OrgMember:
    """The caller's membership; raises 404 so non-members can't probe org ids."""
    member = await get_membership(org_id, user_id, session)
    if not member:
        raise NotFound("Organization not found")
    return member


async def get_org_member(
    org_id: uuid.UUID, member_id: uuid.UUID, session: AsyncSession
) -> OrgMember:
    result = await session.execute(
        select(OrgMember).where(OrgMember.id == member_id, OrgMember.org_id == org_id)
    )
    member = result.scalar_one_or_none()
    if not member:
        raise NotFound("Member not found")
    return member


async def list_user_memberships(
    user_id: uuid.UUID, session: AsyncSession
) -> list[tuple[OrgMember, Organization]]:
    result = await session.execute(
        select(OrgMember, Organization)
        .join(Organization, Organization.id == OrgMember.org_id)
        .where(OrgMember.user_id == user_id)
        .order_by(OrgMember.created_at)
    )
    return [(member, org) for member, org in result.all()]


async def member_app_slugs(member_id: uuid.UUID, session: AsyncSession) -> list[str]:
    result = await session.execute(
        select(MemberAppAccess.app_slug)
        .where(MemberAppAccess.member_id == member_id)
        .order_by(MemberAppAccess.app_slug)
    )
    return list(result.scalars().all())


async def group_app_slugs(group_id: uuid.UUID, session: AsyncSession) -> list[str]:
    result = await session.execute(
        select(GroupAppAccess.app_slug)
        .where(GroupAppAccess.group_id == group_id)
        .order_by(GroupAppAccess.app_slug)
    )
    return list(result.scalars().all())


async def member_group_ids(member_id: uuid.UUID, session: AsyncSession) -> list[uuid.UUID]:
    result = await session.execute(
        select(GroupMember.group_id).where(GroupMember.member_id == member_id)
    )
    return list(result.scalars().all())


async def count_owners(org_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(OrgMember)
        .where(OrgMember.org_id == org_id, OrgMember.role == Role.OWNER.value)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Role checks
# ---------------------------------------------------------------------------

def role_of(member: OrgMember) -> Role:
    return Role(member.role)


def require_manager(member: OrgMember, action: str = "manage this organization") -> None:
    """OWNER or ADMIN only."""
    if role_of(member) not in MANAGER_ROLES:
        raise Forbidden(f"Only owners and admins can {action}")


def require_owner(member: OrgMember, action: str) -> None:
    if role_of(member) != Role.OWNER:
        raise Forbidden(f"Only owners can {action}")


def require_internal(member: OrgMember) -> None:
    """External collaborators only see their apps, never the org's structure."""
    if role_of(member) == Role.EXTERNAL:
        raise Forbidden("External members cannot view organization details")


async def replace_member_grants(
    member_id: uuid.UUID, slugs: list[str], session: AsyncSession
) -> None:
    await session.execute(delete(MemberAppAccess).where(MemberAppAccess.member_id == member_id))
    for slug in slugs:
        session.add(MemberAppAccess(member_id=member_id, app_slug=slug))
    await session.flush()


def user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email, image=user.image)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

async def _member_responses(
    rows: list[tuple[OrgMember, User]], session: AsyncSession
) -> list[MemberResponse]:
    member_ids = [member.id for member, _ in rows]
    grants: dict[uuid.UUID, list[str]] = {mid: [] for mid in member_ids}
    groups: dict[uuid.UUID, list[GroupRef]] = {mid: [] for mid in member_ids}
    if member_ids:
        grant_rows = await session.execute(
            select(MemberAppAccess.member_id, MemberAppAccess.app_slug)
            .where(MemberAppAccess.member_id.in_(member_ids))
            .order_by(MemberAppAccess.app_slug)
        )
        for mid, slug in grant_rows.all():
            grants[mid].append(slug)

        group_rows = await session.execute(
            select(GroupMember.member_id, Group.id, Group.name)
            .join(Group, Group.id == GroupMember.group_id)
            .where(GroupMember.member_id.in_(member_ids))
            .order_by(Group.name)
        )
        for mid, gid, name in group_rows.all():
            groups[mid].append(GroupRef(id=gid, name=name))

    return [
        MemberResponse(
            id=member.id,
            org_id=member.org_id,
            role=Role(member.role),
            user=user_summary(user),
            app_access=grants[member.id],
            groups=groups[member.id],
            created_at=member.created_at,
        )
        for member, user in rows
    ]


async def list_members(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> list[MemberResponse]:
    """All members ordered OWNER → EXTERNAL, then by join time."""
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)

    result = await session.execute(
        select(OrgMember, User)
        .join(User, User.id == OrgMember.user_id)
        .where(OrgMember.org_id == org_id)
        .order_by(OrgMember.created_at, OrgMember.id)
    )
    rows = sorted(result.all(), key=lambda row: -Role(row[0].role).rank)
    return await _member_responses([(member, user) for member, user in rows], session)


async def member_record(member: OrgMember, session: AsyncSession) -> MemberResponse:
    """One member as listed, with grants and groups."""
    user = await session.get(User, member.user_id)
    (record,) = await _member_responses([(member, user)], session)
    return record


# ---------------------------------------------------------------------------
# Direct app grants
# ---------------------------------------------------------------------------

async def get_member_app_access(
    actor_id: uuid.UUID, org_id: uuid.UUID, member_id: uuid.UUID, session: AsyncSession
) -> list[str]:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "view app access")
    member = await get_org_member(org_id, member_id, session)
    return await member_app_slugs(member.id, session)


async def set_member_app_access(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    member_id: uuid.UUID,
    app_slugs: list[str],
    session: AsyncSession,
) -> list[str]:
    """Replace an EXTERNAL member's direct grants."""
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "manage app access")
    member = await get_org_member(org_id, member_id, session)
    if role_of(member) != Role.EXTERNAL:
        raise InvariantViolation("App access can only be set for external members")

    slugs = validate_app_slugs(app_slugs, required=True)
    await replace_member_grants(member.id, slugs, session)

    log.info("member.app_access_updated", org_id=str(org_id), member_id=str(member.id), apps=slugs)
    return slugs


# ---------------------------------------------------------------------------
# Role transitions
# ---------------------------------------------------------------------------

async def change_member_role(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    member_id: uuid.UUID,
    new_role: Role | str,
    app_slugs: Optional[list[str]],
    session: AsyncSession,
) -> OrgMember:
    """Move a member to ADMIN, MEMBER or EXTERNAL.

    Checks run in a fixed order and the first failure wins:
    target role, actor is OWNER, target exists, target is not OWNER,
    target is not the actor, EXTERNAL carries valid app slugs.
    Grants are rewritten in the same flush as the role.
    """
    try:
        role = Role(new_role)
    except ValueError:
        raise ValidationFailed(f"Unknown role: {new_role}")
    if role not in ASSIGNABLE_ROLES:
        raise ValidationFailed("Role must be ADMIN, MEMBER or EXTERNAL")

    actor = await require_membership(org_id, actor_id, session)
    require_owner(actor, "change member roles")

    member = await get_org_member(org_id, member_id, session)
    if role_of(member) == Role.OWNER:
        raise InvariantViolation("Cannot change the role of an owner")
    if member.id == actor.id:
        raise Forbidden("You cannot change your own role")

    slugs: list[str] = []
    if role == Role.EXTERNAL:
        slugs = validate_app_slugs(app_slugs, required=True)

    previous = member.role
    member.role = role.value
    session.add(member)
    # Leaving EXTERNAL drops the grants; entering or staying replaces them
    await replace_member_grants(member.id, slugs, session)

    log.info(
        "member.role_changed",
        org_id=str(org_id),
        member_id=str(member.id),
        old_role=previous,
        new_role=role.value,
        apps=slugs,
    )
    return member


async def remove_member(
    actor_id: uuid.UUID, org_id: uuid.UUID, member_id: uuid.UUID, session: AsyncSession
) -> None:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "remove members")

    member = await get_org_member(org_id, member_id, session)
    target_role = role_of(member)
    if target_role == Role.OWNER:
        raise InvariantViolation("Cannot remove an owner")
    if role_of(actor) == Role.ADMIN and target_role == Role.ADMIN:
        raise Forbidden("Admins cannot remove other admins")

    await purge_member(member, session)
    log.info("member.removed", org_id=str(org_id), member_id=str(member.id), by=str(actor_id))


async def purge_member(member: OrgMember, session: AsyncSession) -> None:
    """Delete a membership together with its grants and group memberships."""
    await session.execute(delete(MemberAppAccess).where(MemberAppAccess.member_id == member.id))
    await session.execute(delete(GroupMember).where(GroupMember.member_id == member.id))
    await session.delete(member)
    await session.flush()
