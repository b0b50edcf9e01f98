"""
Group tests: CRUD, membership, app grants and tenant isolation.
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from account_hub.core.errors import Forbidden, InvariantViolation, NotFound, ValidationFailed
from account_hub.models.group import GroupAppAccess, GroupMember
from account_hub.models.org_member import OrgMember
from account_hub.services.groups import (
    add_group_member,
    create_group,
    delete_group,
    get_group,
    get_group_app_access,
    list_group_members,
    list_groups,
    remove_group_member,
    set_group_app_access,
    update_group,
)
from account_hub.services.organizations import create_org
from account_hub_shared.schemas.common import Role
from account_hub_shared.schemas.groups import GroupCreateRequest, GroupUpdateRequest
from account_hub_shared.schemas.organizations import OrgCreateRequest


async def _group(session, acme, name="Engineering", description=None):
    return await create_group(
        acme.alice.id, acme.org.id, GroupCreateRequest(name=name, description=description), session
    )


class TestGroupCrud:
    async def test_create_and_list_sorted_by_name(self, session, acme):
        await _group(session, acme, "Sales")
        await _group(session, acme, "  Engineering  ", "Builders")

        groups = await list_groups(acme.bob.id, acme.org.id, session)
        assert [g.name for g in groups] == ["Engineering", "Sales"]
        assert groups[0].description == "Builders"
        assert groups[0].member_count == 0
        assert groups[0].app_access == []

    async def test_blank_name_rejected(self, session, acme):
        with pytest.raises(ValidationFailed):
            await _group(session, acme, "   ")

    async def test_duplicate_name_rejected(self, session, acme):
        await _group(session, acme, "Sales")
        with pytest.raises(InvariantViolation):
            await _group(session, acme, "Sales")

    async def test_rename_checks_duplicates(self, session, acme):
        await _group(session, acme, "Sales")
        ops = await _group(session, acme, "Ops")
        with pytest.raises(InvariantViolation):
            await update_group(
                acme.alice.id, acme.org.id, ops.id, GroupUpdateRequest(name="Sales"), session
            )
        renamed = await update_group(
            acme.alice.id, acme.org.id, ops.id, GroupUpdateRequest(name="Operations"), session
        )
        assert renamed.name == "Operations"

    async def test_description_can_be_cleared(self, session, acme):
        group = await _group(session, acme, "Ops", "Night shift")
        updated = await update_group(
            acme.alice.id, acme.org.id, group.id, GroupUpdateRequest(description=""), session
        )
        assert updated.description is None
        assert updated.name == "Ops"

    async def test_member_cannot_create(self, session, acme, make_user):
        rita = await make_user("rita@acme.com")
        session.add(OrgMember(user_id=rita.id, org_id=acme.org.id, role=Role.MEMBER.value))
        await session.flush()
        with pytest.raises(Forbidden):
            await create_group(rita.id, acme.org.id, GroupCreateRequest(name="Mine"), session)
        # but may read
        assert await list_groups(rita.id, acme.org.id, session) == []

    async def test_delete_cascades(self, session, acme):
        group = await _group(session, acme, "Temp")
        await add_group_member(acme.alice.id, acme.org.id, group.id, acme.bob_member.id, session)
        await set_group_app_access(acme.alice.id, acme.org.id, group.id, ["nota"], session)

        await delete_group(acme.alice.id, acme.org.id, group.id, session)

        assert (await session.execute(select(GroupMember).where(GroupMember.group_id == group.id))).first() is None
        assert (await session.execute(select(GroupAppAccess).where(GroupAppAccess.group_id == group.id))).first() is None
        with pytest.raises(NotFound):
            await get_group(acme.alice.id, acme.org.id, group.id, session)


class TestGroupMembers:
    async def test_add_list_remove(self, session, acme):
        group = await _group(session, acme)
        added = await add_group_member(acme.alice.id, acme.org.id, group.id, acme.bob_member.id, session)
        assert added.id == acme.bob_member.id
        assert added.user.email == "bob@acme.com"

        detail = await get_group(acme.bob.id, acme.org.id, group.id, session)
        assert detail.member_count == 1
        assert [m.id for m in detail.members] == [acme.bob_member.id]

        await remove_group_member(acme.alice.id, acme.org.id, group.id, acme.bob_member.id, session)
        assert await list_group_members(acme.alice.id, acme.org.id, group.id, session) == []

    async def test_duplicate_add_rejected(self, session, acme):
        group = await _group(session, acme)
        await add_group_member(acme.alice.id, acme.org.id, group.id, acme.bob_member.id, session)
        with pytest.raises(InvariantViolation):
            await add_group_member(acme.alice.id, acme.org.id, group.id, acme.bob_member.id, session)

    async def test_remove_absent_member(self, session, acme):
        group = await _group(session, acme)
        with pytest.raises(NotFound):
            await remove_group_member(acme.alice.id, acme.org.id, group.id, acme.bob_member.id, session)

    async def test_member_from_other_org_rejected(self, session, acme, make_user):
        sam = await make_user("sam@other.com")
        await create_org(OrgCreateRequest(name="Other"), sam.id, session)
        result = await session.execute(select(OrgMember).where(OrgMember.user_id == sam.id))
        sam_member = result.scalar_one()

        group = await _group(session, acme)
        with pytest.raises(NotFound):
            await add_group_member(acme.alice.id, acme.org.id, group.id, sam_member.id, session)


class TestGroupAppAccess:
    async def test_replace_and_clear(self, session, acme):
        group = await _group(session, acme)
        assert await set_group_app_access(
            acme.alice.id, acme.org.id, group.id, ["nota", "contacts", "nota"], session
        ) == ["nota", "contacts"]
        assert await get_group_app_access(acme.bob.id, acme.org.id, group.id, session) == ["contacts", "nota"]

        assert await set_group_app_access(acme.alice.id, acme.org.id, group.id, [], session) == []
        assert await get_group_app_access(acme.bob.id, acme.org.id, group.id, session) == []

    async def test_unknown_slug_rejected(self, session, acme):
        group = await _group(session, acme)
        with pytest.raises(ValidationFailed):
            await set_group_app_access(acme.alice.id, acme.org.id, group.id, ["nota", "bogus"], session)


class TestTenantIsolation:
    async def test_group_of_other_org_is_not_found(self, session, acme, make_user):
        tom = await make_user("tom@other.com")
        other, _ = await create_org(OrgCreateRequest(name="Other"), tom.id, session)
        foreign = await create_group(tom.id, other.id, GroupCreateRequest(name="Theirs"), session)

        with pytest.raises(NotFound):
            await get_group(acme.alice.id, acme.org.id, foreign.id, session)
        with pytest.raises(NotFound):
            await delete_group(acme.alice.id, acme.org.id, foreign.id, session)

    async def test_non_member_gets_not_found(self, session, acme, make_user):
        uma = await make_user("uma@nowhere.com")
        with pytest.raises(NotFound):
            await list_groups(uma.id, acme.org.id, session)

    async def test_unknown_group(self, session, acme):
        with pytest.raises(NotFound):
            await get_group(acme.alice.id, acme.org.id, uuid.uuid4(), session)
