"""
Entity tests: the default-entity invariant, slug rules and deletion.
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from account_hub.core.errors import Forbidden, InvariantViolation, NotFound, ValidationFailed
from account_hub.models.entity import Entity
from account_hub.models.org_member import OrgMember
from account_hub.services.entities import (
    create_entity,
    delete_entity,
    get_entity,
    list_entities,
    update_entity,
)
from account_hub_shared.schemas.common import Role
from account_hub_shared.schemas.entities import EntityCreateRequest, EntityUpdateRequest


async def _defaults(session, org_id) -> list[Entity]:
    result = await session.execute(
        select(Entity).where(Entity.org_id == org_id, Entity.is_default.is_(True))
    )
    return list(result.scalars().all())


async def _default_entity(session, acme) -> Entity:
    (entity,) = await _defaults(session, acme.org.id)
    return entity


class TestDefaultEntityScenario:
    async def test_sole_default_cannot_be_deleted(self, session, acme):
        default = await _default_entity(session, acme)
        assert default.slug == "default"
        with pytest.raises(InvariantViolation):
            await delete_entity(acme.alice.id, acme.org.id, default.id, session)

    async def test_deleting_default_promotes_branch(self, session, acme):
        default = await _default_entity(session, acme)
        branch = await create_entity(
            acme.alice.id, acme.org.id, EntityCreateRequest(name="Branch"), session
        )
        assert branch.slug == "branch"
        assert branch.is_default is False

        await delete_entity(acme.alice.id, acme.org.id, default.id, session)

        entities = await list_entities(acme.alice.id, acme.org.id, session)
        assert [e.slug for e in entities] == ["branch"]
        assert entities[0].is_default is True


class TestCreateEntity:
    async def test_new_default_unsets_siblings(self, session, acme):
        hq = await create_entity(
            acme.alice.id, acme.org.id, EntityCreateRequest(name="HQ", is_default=True), session
        )
        defaults = await _defaults(session, acme.org.id)
        assert [e.id for e in defaults] == [hq.id]

    async def test_slug_collision_gets_suffix(self, session, acme):
        first = await create_entity(acme.alice.id, acme.org.id, EntityCreateRequest(name="Branch"), session)
        second = await create_entity(acme.alice.id, acme.org.id, EntityCreateRequest(name="branch!"), session)
        third = await create_entity(acme.alice.id, acme.org.id, EntityCreateRequest(name="Branch"), session)
        assert [first.slug, second.slug, third.slug] == ["branch", "branch-1", "branch-2"]

    async def test_profile_fields_stored(self, session, acme):
        entity = await create_entity(
            acme.alice.id,
            acme.org.id,
            EntityCreateRequest(name="Acme BV", legal_name="Acme B.V.", country="NL", tax_id="NL123"),
            session,
        )
        assert entity.legal_name == "Acme B.V."
        assert entity.country == "NL"

    async def test_personal_org_has_no_entities(self, session, make_account):
        vic = await make_account("vic@example.com", "Vic")
        result = await session.execute(select(OrgMember).where(OrgMember.user_id == vic.id))
        personal = result.scalar_one()

        assert await list_entities(vic.id, personal.org_id, session) == []
        with pytest.raises(InvariantViolation):
            await create_entity(vic.id, personal.org_id, EntityCreateRequest(name="Side gig"), session)

    async def test_member_cannot_create(self, session, acme, make_user):
        wes = await make_user("wes@acme.com")
        session.add(OrgMember(user_id=wes.id, org_id=acme.org.id, role=Role.MEMBER.value))
        await session.flush()
        with pytest.raises(Forbidden):
            await create_entity(wes.id, acme.org.id, EntityCreateRequest(name="Mine"), session)


class TestUpdateEntity:
    async def test_swap_default(self, session, acme):
        default = await _default_entity(session, acme)
        branch = await create_entity(acme.alice.id, acme.org.id, EntityCreateRequest(name="Branch"), session)

        await update_entity(
            acme.bob.id, acme.org.id, branch.id, EntityUpdateRequest(is_default=True), session
        )
        defaults = await _defaults(session, acme.org.id)
        assert [e.id for e in defaults] == [branch.id]
        assert default.is_default is False

    async def test_unsetting_default_rejected(self, session, acme):
        default = await _default_entity(session, acme)
        await create_entity(acme.alice.id, acme.org.id, EntityCreateRequest(name="Branch"), session)
        with pytest.raises(InvariantViolation):
            await update_entity(
                acme.alice.id, acme.org.id, default.id, EntityUpdateRequest(is_default=False), session
            )
        assert len(await _defaults(session, acme.org.id)) == 1

    async def test_slug_must_be_unique_in_org(self, session, acme):
        branch = await create_entity(acme.alice.id, acme.org.id, EntityCreateRequest(name="Branch"), session)
        with pytest.raises(InvariantViolation):
            await update_entity(
                acme.alice.id, acme.org.id, branch.id, EntityUpdateRequest(slug="default"), session
            )
        updated = await update_entity(
            acme.alice.id, acme.org.id, branch.id, EntityUpdateRequest(slug="north-branch"), session
        )
        assert updated.slug == "north-branch"

    async def test_blank_name_rejected(self, session, acme):
        default = await _default_entity(session, acme)
        with pytest.raises(ValidationFailed):
            await update_entity(
                acme.alice.id, acme.org.id, default.id, EntityUpdateRequest(name="  "), session
            )


class TestReadEntity:
    async def test_external_cannot_read(self, session, acme, make_user):
        xena = await make_user("xena@acme.com")
        session.add(OrgMember(user_id=xena.id, org_id=acme.org.id, role=Role.EXTERNAL.value))
        await session.flush()
        default = await _default_entity(session, acme)
        with pytest.raises(Forbidden):
            await get_entity(xena.id, acme.org.id, default.id, session)

    async def test_default_listed_first(self, session, acme):
        await create_entity(acme.alice.id, acme.org.id, EntityCreateRequest(name="Branch"), session)
        entities = await list_entities(acme.bob.id, acme.org.id, session)
        assert entities[0].is_default is True
        assert [e.slug for e in entities] == ["default", "branch"]

    async def test_missing_entity(self, session, acme):
        with pytest.raises(NotFound):
            await get_entity(acme.alice.id, acme.org.id, uuid.uuid4(), session)
