"""
Organization service: business logic for org CRUD and lifecycle.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.errors import Forbidden, InvariantViolation, NotFound, ValidationFailed
from account_hub.models.base import utcnow
from account_hub.models.entity import Entity
from account_hub.models.group import Group, GroupAppAccess, GroupMember
from account_hub.models.invitation import Invitation
from account_hub.models.org_member import MemberAppAccess, OrgMember
from account_hub.models.organization import Organization
from account_hub.models.subscription import Subscription
from account_hub.services.memberships import (
    count_owners,
    require_internal,
    require_membership,
    require_owner,
)
from account_hub.services.slugs import slug_in_use, slugify, unique_slug, validate_slug

from account_hub_shared.schemas.common import OrgType, Role
from account_hub_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgListItem,
    OrgUpdateRequest,
)

log = structlog.get_logger()

DELETE_CONFIRMATION = "DELETE"


async def get_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    org = await session.get(Organization, org_id)
    if not org:
        raise NotFound("Organization not found")
    return org


async def provision_org(
    name: str,
    org_type: OrgType,
    owner_id: uuid.UUID,
    session: AsyncSession,
    slug_source: str | None = None,
) -> Organization:
    """Insert an org with a unique slug and make ``owner_id`` its OWNER.

    BUSINESS orgs start with a default entity named after the org.
    """
    base = slugify(slug_source or name, fallback="org")
    org = Organization(
        name=name,
        slug=await unique_slug(session, Organization, base),
        type=org_type.value,
    )
    session.add(org)
    await session.flush()

    session.add(OrgMember(user_id=owner_id, org_id=org.id, role=Role.OWNER.value))
    if org_type == OrgType.BUSINESS:
        session.add(Entity(org_id=org.id, name=name, slug="default", is_default=True))
    await session.flush()
    return org


async def list_user_orgs(
    user_id: uuid.UUID, session: AsyncSession
) -> list[OrgListItem]:
    """List all orgs a user belongs to, with their role and head count."""
    member_count = (
        select(OrgMember.org_id, func.count().label("member_count"))
        .group_by(OrgMember.org_id)
        .subquery()
    )
    result = await session.execute(
        select(Organization, OrgMember.role, member_count.c.member_count)
        .join(OrgMember, OrgMember.org_id == Organization.id)
        .join(member_count, member_count.c.org_id == Organization.id)
        .where(OrgMember.user_id == user_id)
        .order_by(OrgMember.created_at)
    )
    return [
        OrgListItem(
            id=org.id,
            name=org.name,
            slug=org.slug,
            type=OrgType(org.type),
            role=Role(role),
            member_count=count,
        )
        for org, role, count in result.all()
    ]


async def create_org(
    req: OrgCreateRequest,
    creator_id: uuid.UUID,
    session: AsyncSession,
) -> tuple[Organization, list[Entity]]:
    """Create a BUSINESS org and make the creator its owner."""
    name = req.name.strip()
    if not name:
        raise ValidationFailed("Organization name is required")
    if req.type == OrgType.INDIVIDUAL:
        raise InvariantViolation("Personal organizations are created with the account")

    org = await provision_org(name, OrgType.BUSINESS, creator_id, session)
    entities = await session.execute(select(Entity).where(Entity.org_id == org.id))

    log.info("org.created", org_id=str(org.id), slug=org.slug, creator=str(creator_id))
    return org, list(entities.scalars().all())


async def get_org_detail(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Organization:
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)
    return await get_org(org_id, session)


async def update_org(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    req: OrgUpdateRequest,
    session: AsyncSession,
) -> Organization:
    """Update org name and/or slug. The org type is fixed at creation."""
    actor = await require_membership(org_id, actor_id, session)
    require_owner(actor, "update organization settings")
    org = await get_org(org_id, session)

    changes = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        raise ValidationFailed("No fields to update")

    if "type" in changes and OrgType(changes["type"]).value != org.type:
        raise InvariantViolation("Organization type cannot be changed")

    if "name" in changes:
        name = changes["name"].strip()
        if not name:
            raise ValidationFailed("Organization name is required")
        org.name = name

    if "slug" in changes and changes["slug"] != org.slug:
        slug = validate_slug(changes["slug"])
        if await slug_in_use(session, Organization, slug, exclude_id=org.id):
            raise InvariantViolation("Org slug already taken")
        org.slug = slug

    org.updated_at = utcnow()
    session.add(org)
    await session.flush()

    log.info("org.updated", org_id=str(org.id), slug=org.slug, fields=sorted(changes))
    return org


async def delete_org(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    confirmation: str,
    session: AsyncSession,
) -> None:
    """Delete a BUSINESS org. Only its sole owner may do this."""
    actor = await require_membership(org_id, actor_id, session)
    if confirmation != DELETE_CONFIRMATION:
        raise ValidationFailed('Type "DELETE" to confirm')
    require_owner(actor, "delete the organization")

    org = await get_org(org_id, session)
    if org.type == OrgType.INDIVIDUAL.value:
        raise InvariantViolation("Personal organizations are removed by deleting the account")
    if await count_owners(org.id, session) > 1:
        raise Forbidden("Organizations with multiple owners cannot be deleted")

    await purge_organization(org, session)
    log.info("org.deleted", org_id=str(org_id), by=str(actor_id))


async def purge_organization(org: Organization, session: AsyncSession) -> None:
    """Delete an org and everything it owns."""
    member_ids = select(OrgMember.id).where(OrgMember.org_id == org.id)
    group_ids = select(Group.id).where(Group.org_id == org.id)

    await session.execute(delete(MemberAppAccess).where(MemberAppAccess.member_id.in_(member_ids)))
    await session.execute(delete(GroupMember).where(GroupMember.group_id.in_(group_ids)))
    await session.execute(delete(GroupAppAccess).where(GroupAppAccess.group_id.in_(group_ids)))
    await session.execute(delete(Group).where(Group.org_id == org.id))
    await session.execute(delete(OrgMember).where(OrgMember.org_id == org.id))
    await session.execute(delete(Entity).where(Entity.org_id == org.id))
    await session.execute(delete(Invitation).where(Invitation.org_id == org.id))
    await session.execute(delete(Subscription).where(Subscription.org_id == org.id))
    await session.delete(org)
    await session.flush()
