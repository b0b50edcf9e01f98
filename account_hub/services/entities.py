"""
Entity service: business sub-profiles of an organization.

Whenever an org has entities, exactly one of them is the default. Every
operation that touches ``is_default`` rewrites the siblings in the same flush.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.errors import InvariantViolation, NotFound, ValidationFailed
from account_hub.models.base import ensure_utc, utcnow
from account_hub.models.entity import Entity
from account_hub.services.memberships import require_internal, require_manager, require_membership
from account_hub.services.organizations import get_org
from account_hub.services.slugs import slug_in_use, slugify, unique_slug, validate_slug

from account_hub_shared.schemas.common import OrgType
from account_hub_shared.schemas.entities import (
    EntityCreateRequest,
    EntityProfile,
    EntityUpdateRequest,
)

log = structlog.get_logger()

PROFILE_FIELDS = tuple(EntityProfile.model_fields)


async def _get_entity(org_id: uuid.UUID, entity_id: uuid.UUID, session: AsyncSession) -> Entity:
    result = await session.execute(
        select(Entity).where(Entity.id == entity_id, Entity.org_id == org_id)
    )
    entity = result.scalar_one_or_none()
    if not entity:
        raise NotFound("Entity not found")
    return entity


async def _org_entities(org_id: uuid.UUID, session: AsyncSession) -> list[Entity]:
    """Default first, then oldest."""
    result = await session.execute(
        select(Entity)
        .where(Entity.org_id == org_id)
        .order_by(Entity.is_default.desc(), Entity.created_at, Entity.id)
    )
    return list(result.scalars().all())


async def _clear_default(org_id: uuid.UUID, session: AsyncSession) -> None:
    await session.execute(
        update(Entity)
        .where(Entity.org_id == org_id, Entity.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


async def list_entities(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> list[Entity]:
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)
    org = await get_org(org_id, session)
    if org.type != OrgType.BUSINESS.value:
        return []
    return await _org_entities(org_id, session)


async def get_entity(
    actor_id: uuid.UUID, org_id: uuid.UUID, entity_id: uuid.UUID, session: AsyncSession
) -> Entity:
    actor = await require_membership(org_id, actor_id, session)
    require_internal(actor)
    return await _get_entity(org_id, entity_id, session)


async def create_entity(
    actor_id: uuid.UUID, org_id: uuid.UUID, req: EntityCreateRequest, session: AsyncSession
) -> Entity:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "create entities")
    org = await get_org(org_id, session)
    if org.type != OrgType.BUSINESS.value:
        raise InvariantViolation("Entities are only available for business organizations")

    name = req.name.strip()
    if not name:
        raise ValidationFailed("Entity name is required")

    siblings = await _org_entities(org_id, session)
    is_default = req.is_default or not siblings
    if is_default and siblings:
        await _clear_default(org_id, session)

    entity = Entity(
        org_id=org_id,
        name=name,
        slug=await unique_slug(
            session, Entity, slugify(name, fallback="entity"), Entity.org_id == org_id
        ),
        # The first entity is always the default
        is_default=is_default,
        **req.model_dump(include=set(PROFILE_FIELDS)),
    )
    session.add(entity)
    await session.flush()

    log.info("entity.created", org_id=str(org_id), entity_id=str(entity.id), default=entity.is_default)
    return entity


async def update_entity(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    entity_id: uuid.UUID,
    req: EntityUpdateRequest,
    session: AsyncSession,
) -> Entity:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "edit entities")
    entity = await _get_entity(org_id, entity_id, session)

    changes = req.model_dump(exclude_unset=True)

    if changes.get("is_default") is False and entity.is_default:
        raise InvariantViolation(
            "Cannot unset the default entity; make another entity the default instead"
        )

    if changes.get("name") is not None:
        name = changes["name"].strip()
        if not name:
            raise ValidationFailed("Entity name is required")
        entity.name = name

    if changes.get("slug") is not None and changes["slug"] != entity.slug:
        slug = validate_slug(changes["slug"])
        if await slug_in_use(session, Entity, slug, Entity.org_id == org_id, exclude_id=entity.id):
            raise InvariantViolation("An entity with this slug already exists")
        entity.slug = slug

    for field in PROFILE_FIELDS:
        if field in changes:
            setattr(entity, field, changes[field])

    if changes.get("is_default") is True and not entity.is_default:
        await _clear_default(org_id, session)
        entity.is_default = True

    entity.updated_at = utcnow()
    session.add(entity)
    await session.flush()

    log.info("entity.updated", org_id=str(org_id), entity_id=str(entity.id), fields=sorted(changes))
    return entity


async def delete_entity(
    actor_id: uuid.UUID, org_id: uuid.UUID, entity_id: uuid.UUID, session: AsyncSession
) -> None:
    """Delete an entity; deleting the default promotes the oldest remaining one."""
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "delete entities")
    entity = await _get_entity(org_id, entity_id, session)

    remaining = [e for e in await _org_entities(org_id, session) if e.id != entity.id]
    if not remaining:
        raise InvariantViolation("Cannot delete the only entity of an organization")

    was_default = entity.is_default
    await session.delete(entity)
    await session.flush()

    if was_default:
        successor = min(remaining, key=lambda e: (ensure_utc(e.created_at), str(e.id)))
        successor.is_default = True
        successor.updated_at = utcnow()
        session.add(successor)
        await session.flush()
        log.info("entity.default_promoted", org_id=str(org_id), entity_id=str(successor.id))

    log.info("entity.deleted", org_id=str(org_id), entity_id=str(entity_id))
