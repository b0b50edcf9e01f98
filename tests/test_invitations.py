"""
Invitation workflow tests: creation rules, lazy expiry, withdrawal and
single-use acceptance.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from sqlmodel import select

from account_hub.core.errors import Forbidden, InvariantViolation, NotFound, ValidationFailed
from account_hub.models.base import utcnow
from account_hub.models.invitation import Invitation, decode_app_slugs
from account_hub.models.org_member import OrgMember
from account_hub.services.invitations import (
    accept_invitation,
    create_invitation,
    list_invitations,
    withdraw_invitation,
)
from account_hub.services.memberships import member_app_slugs
from account_hub_shared.schemas.common import Role


async def _expire(session, invitation: Invitation) -> None:
    invitation.expires_at = utcnow() - timedelta(minutes=1)
    session.add(invitation)
    await session.flush()


class TestCreateInvitation:
    async def test_defaults(self, session, acme):
        invitation = await create_invitation(acme.alice.id, acme.org.id, "  New@Y.com ", session)
        assert invitation.email == "new@y.com"
        assert invitation.role == Role.MEMBER.value
        assert invitation.app_slugs is None
        assert invitation.invited_by == acme.alice.id
        assert invitation.expires_at - invitation.created_at == timedelta(days=7)
        assert len(invitation.token) >= 32

    async def test_twice_within_window_is_pending(self, session, acme):
        await create_invitation(acme.alice.id, acme.org.id, "x@y.com", session)
        with pytest.raises(InvariantViolation, match="already pending"):
            await create_invitation(acme.bob.id, acme.org.id, "x@y.com", session)

    async def test_expired_invitation_is_replaced(self, session, acme):
        stale = await create_invitation(acme.alice.id, acme.org.id, "x@y.com", session)
        stale_id, stale_token = stale.id, stale.token
        await _expire(session, stale)

        fresh = await create_invitation(acme.alice.id, acme.org.id, "x@y.com", session)
        assert fresh.id != stale_id
        assert fresh.token != stale_token

        result = await session.execute(
            select(Invitation).where(Invitation.org_id == acme.org.id, Invitation.email == "x@y.com")
        )
        assert [i.id for i in result.scalars().all()] == [fresh.id]

    async def test_existing_member_rejected(self, session, acme):
        with pytest.raises(InvariantViolation):
            await create_invitation(acme.alice.id, acme.org.id, "BOB@acme.com", session)

    async def test_external_round_trips_app_slugs(self, session, acme):
        invitation = await create_invitation(
            acme.alice.id, acme.org.id, "ext@y.com", session,
            role=Role.EXTERNAL, app_slugs=["nota", "contacts"],
        )
        assert set(decode_app_slugs(invitation.app_slugs)) == {"nota", "contacts"}

    async def test_external_requires_apps(self, session, acme):
        with pytest.raises(ValidationFailed):
            await create_invitation(acme.alice.id, acme.org.id, "ext@y.com", session, role=Role.EXTERNAL)
        with pytest.raises(ValidationFailed):
            await create_invitation(
                acme.alice.id, acme.org.id, "ext@y.com", session, role=Role.EXTERNAL, app_slugs=["bogus"]
            )

    async def test_owner_role_not_invitable(self, session, acme):
        with pytest.raises(ValidationFailed):
            await create_invitation(acme.alice.id, acme.org.id, "boss@y.com", session, role=Role.OWNER)

    async def test_non_external_invitation_stores_no_apps(self, session, acme):
        invitation = await create_invitation(
            acme.alice.id, acme.org.id, "m@y.com", session, role=Role.MEMBER, app_slugs=["nota"]
        )
        assert invitation.app_slugs is None

    @pytest.mark.parametrize("role", [Role.MEMBER, Role.EXTERNAL])
    async def test_only_managers_can_invite(self, session, acme, make_user, role):
        yuri = await make_user("yuri@acme.com")
        session.add(OrgMember(user_id=yuri.id, org_id=acme.org.id, role=role.value))
        await session.flush()
        with pytest.raises(Forbidden):
            await create_invitation(yuri.id, acme.org.id, "z@y.com", session)


class TestListAndWithdraw:
    async def test_lists_only_unexpired(self, session, acme):
        old = await create_invitation(acme.alice.id, acme.org.id, "old@y.com", session)
        await _expire(session, old)
        pending = await create_invitation(acme.alice.id, acme.org.id, "new@y.com", session)

        invitations = await list_invitations(acme.bob.id, acme.org.id, session)
        assert [i.id for i in invitations] == [pending.id]

    async def test_withdraw(self, session, acme):
        invitation = await create_invitation(acme.alice.id, acme.org.id, "w@y.com", session)
        await withdraw_invitation(acme.bob.id, acme.org.id, invitation.id, session)
        assert await list_invitations(acme.alice.id, acme.org.id, session) == []

    async def test_withdraw_via_other_org_is_not_found(self, session, acme, make_user):
        from account_hub.services.organizations import create_org
        from account_hub_shared.schemas.organizations import OrgCreateRequest

        zed = await make_user("zed@other.com")
        other, _ = await create_org(OrgCreateRequest(name="Other"), zed.id, session)
        invitation = await create_invitation(acme.alice.id, acme.org.id, "w@y.com", session)
        with pytest.raises(NotFound):
            await withdraw_invitation(zed.id, other.id, invitation.id, session)


class TestAcceptInvitation:
    async def test_accept_external_creates_grants(self, session, acme, make_user):
        ext = await make_user("ext@y.com")
        invitation = await create_invitation(
            acme.alice.id, acme.org.id, "ext@y.com", session,
            role=Role.EXTERNAL, app_slugs=["nota", "contacts"],
        )
        token = invitation.token

        member, slugs = await accept_invitation(ext.id, token, session)
        assert member.role == Role.EXTERNAL.value
        assert slugs == ["nota", "contacts"]
        assert sorted(await member_app_slugs(member.id, session)) == ["contacts", "nota"]

        # single use
        with pytest.raises(NotFound):
            await accept_invitation(ext.id, token, session)

    async def test_unknown_token(self, session, acme):
        with pytest.raises(NotFound):
            await accept_invitation(acme.bob.id, "no-such-token", session)

    async def test_expired_token(self, session, acme, make_user):
        late = await make_user("late@y.com")
        invitation = await create_invitation(acme.alice.id, acme.org.id, "late@y.com", session)
        await _expire(session, invitation)
        with pytest.raises(InvariantViolation):
            await accept_invitation(late.id, invitation.token, session)

    async def test_email_must_match(self, session, acme, make_user):
        other = await make_user("someone-else@y.com")
        invitation = await create_invitation(acme.alice.id, acme.org.id, "invitee@y.com", session)
        with pytest.raises(Forbidden):
            await accept_invitation(other.id, invitation.token, session)

    async def test_external_without_stored_apps_is_rejected(self, session, acme, make_user):
        odd = await make_user("odd@y.com")
        invitation = Invitation(
            org_id=acme.org.id,
            email="odd@y.com",
            role=Role.EXTERNAL.value,
            app_slugs=None,
            token=uuid.uuid4().hex,
            expires_at=utcnow() + timedelta(days=1),
        )
        session.add(invitation)
        await session.flush()
        with pytest.raises(InvariantViolation):
            await accept_invitation(odd.id, invitation.token, session)
