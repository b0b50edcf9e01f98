"""
Group service: named member collections and their app grants.

Reads are open to every non-EXTERNAL member; mutations need OWNER or ADMIN.
A group id belonging to another organization is reported as not found.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.catalog import validate_app_slugs
from account_hub.core.errors import InvariantViolation, NotFound, ValidationFailed
from account_hub.models.base import utcnow
from account_hub.models.group import Group, GroupAppAccess, GroupMember
from account_hub.models.org_member import OrgMember
from account_hub.models.user import User
from account_hub.services.memberships import (
    get_org_member,
    group_app_slugs,
    member_group_ids,
    require_internal,
    require_manager,
    require_membership,
    user_summary,
)

from account_hub_shared.schemas.common import Role
from account_hub_shared.schemas.groups import (
    GroupCreateRequest,
    GroupDetailResponse,
    GroupMemberResponse,
    GroupResponse,
    GroupUpdateRequest,
)

log = structlog.get_logger()


async def _get_group(org_id: uuid.UUID, group_id: uuid.UUID, session: AsyncSession) -> Group:
    result = await session.execute(
        select(Group).where(Group.id == group_id, Group.org_id == org_id)
    )
    group = result.scalar_one_or_none()
    if not group:
        raise NotFound("Group not found")
    return group


async def _ensure_name_free(
    org_id: uuid.UUID, name: str, session: AsyncSession, exclude_id: Optional[uuid.UUID] = None
) -> None:
    query = select(Group.id).where(Group.org_id == org_id, Group.name == name)
    if exclude_id is not None:
        query = query.where(Group.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise InvariantViolation(f"A group named '{name}' already exists")


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationFailed("Group name is required")
    return cleaned


async def _member_count(group_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count()).select_from(GroupMember).where(GroupMember.group_id == group_id)
    )
    return result.scalar_one()


async def _to_response(group: Group, session: AsyncSession) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        member_count=await _member_count(group.id, session),
        app_access=await group_app_slugs(group.id, session),
        created_at=group.created_at,
        updated_at=group.updated_at,
    )


async def _group_members(group_id: uuid.UUID, session: AsyncSession) -> list[GroupMemberResponse]:
    result = await session.execute(
        select(GroupMember, OrgMember, User)
        .join(OrgMember, OrgMember.id == GroupMember.member_id)
        .join(User, User.id == OrgMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.created_at, GroupMember.id)
    )
    return [
        GroupMemberResponse(
            id=member.id,
            role=Role(member.role),
            user=user_summary(user),
            added_at=link.created_at,
        )
        for link, member, user in result.all()
    ]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_groups(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> list[GroupResponse]:
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)
    result = await session.execute(
        select(Group).where(Group.org_id == org_id).order_by(Group.name)
    )
    return [await _to_response(group, session) for group in result.scalars().all()]


async def get_group(
    actor_id: uuid.UUID, org_id: uuid.UUID, group_id: uuid.UUID, session: AsyncSession
) -> GroupDetailResponse:
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)
    group = await _get_group(org_id, group_id, session)
    summary = await _to_response(group, session)
    return GroupDetailResponse(
        **summary.model_dump(),
        members=await _group_members(group.id, session),
    )


async def list_group_members(
    actor_id: uuid.UUID, org_id: uuid.UUID, group_id: uuid.UUID, session: AsyncSession
) -> list[GroupMemberResponse]:
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)
    group = await _get_group(org_id, group_id, session)
    return await _group_members(group.id, session)


async def get_group_app_access(
    actor_id: uuid.UUID, org_id: uuid.UUID, group_id: uuid.UUID, session: AsyncSession
) -> list[str]:
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)
    group = await _get_group(org_id, group_id, session)
    return await group_app_slugs(group.id, session)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

async def create_group(
    actor_id: uuid.UUID, org_id: uuid.UUID, req: GroupCreateRequest, session: AsyncSession
) -> GroupResponse:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "create groups")

    name = _clean_name(req.name)
    await _ensure_name_free(org_id, name, session)

    group = Group(org_id=org_id, name=name, description=(req.description or "").strip() or None)
    session.add(group)
    await session.flush()

    log.info("group.created", org_id=str(org_id), group_id=str(group.id), name=name)
    return await _to_response(group, session)


async def update_group(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    group_id: uuid.UUID,
    req: GroupUpdateRequest,
    session: AsyncSession,
) -> GroupResponse:
    """Rename and/or change the description; an empty description clears it."""
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "edit groups")
    group = await _get_group(org_id, group_id, session)

    changes = req.model_dump(exclude_unset=True)
    if "name" in changes:
        name = _clean_name(changes["name"])
        if name != group.name:
            await _ensure_name_free(org_id, name, session, exclude_id=group.id)
            group.name = name
    if "description" in changes:
        group.description = (changes["description"] or "").strip() or None

    group.updated_at = utcnow()
    session.add(group)
    await session.flush()

    log.info("group.updated", org_id=str(org_id), group_id=str(group.id), fields=sorted(changes))
    return await _to_response(group, session)


async def delete_group(
    actor_id: uuid.UUID, org_id: uuid.UUID, group_id: uuid.UUID, session: AsyncSession
) -> None:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "delete groups")
    group = await _get_group(org_id, group_id, session)

    await purge_group(group, session)
    log.info("group.deleted", org_id=str(org_id), group_id=str(group_id))


async def purge_group(group: Group, session: AsyncSession) -> None:
    await session.execute(delete(GroupMember).where(GroupMember.group_id == group.id))
    await session.execute(delete(GroupAppAccess).where(GroupAppAccess.group_id == group.id))
    await session.delete(group)
    await session.flush()


async def add_group_member(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    group_id: uuid.UUID,
    member_id: uuid.UUID,
    session: AsyncSession,
) -> GroupMemberResponse:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "manage group members")
    group = await _get_group(org_id, group_id, session)
    member = await get_org_member(org_id, member_id, session)

    if group.id in await member_group_ids(member.id, session):
        raise InvariantViolation("Member is already in this group")

    link = GroupMember(group_id=group.id, member_id=member.id)
    session.add(link)
    await session.flush()

    user = await session.get(User, member.user_id)
    log.info("group.member_added", group_id=str(group.id), member_id=str(member.id))
    return GroupMemberResponse(
        id=member.id, role=Role(member.role), user=user_summary(user), added_at=link.created_at
    )


async def remove_group_member(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    group_id: uuid.UUID,
    member_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "manage group members")
    group = await _get_group(org_id, group_id, session)

    result = await session.execute(
        select(GroupMember).where(
            GroupMember.group_id == group.id, GroupMember.member_id == member_id
        )
    )
    link = result.scalar_one_or_none()
    if not link:
        raise NotFound("Member is not in this group")

    await session.delete(link)
    await session.flush()
    log.info("group.member_removed", group_id=str(group.id), member_id=str(member_id))


async def set_group_app_access(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    group_id: uuid.UUID,
    app_slugs: list[str],
    session: AsyncSession,
) -> list[str]:
    """Replace the group's grants; an empty list revokes everything."""
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "manage app access")
    group = await _get_group(org_id, group_id, session)

    slugs = validate_app_slugs(app_slugs)
    await session.execute(delete(GroupAppAccess).where(GroupAppAccess.group_id == group.id))
    for slug in slugs:
        session.add(GroupAppAccess(group_id=group.id, app_slug=slug))
    await session.flush()

    log.info("group.app_access_updated", group_id=str(group.id), apps=slugs)
    return slugs
