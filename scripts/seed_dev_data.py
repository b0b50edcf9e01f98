#!/usr/bin/env python3
"""Seed a development database with a demo organization, users, a group and an entity.

Usage:
    python scripts/seed_dev_data.py

Requires HUB_DATABASE_URL (or defaults to localhost). Run the migrations first.
Re-running is safe: existing users are reused and the demo org is only created once.
"""

import asyncio

import structlog

from account_hub.core.config import get_settings
from account_hub.core.database import get_session_context
from account_hub.core.logging_config import configure_logging
from account_hub.services.entitlements import record_subscription_status
from account_hub.services.entities import create_entity
from account_hub.services.groups import add_group_member, create_group, set_group_app_access
from account_hub.services.invitations import accept_invitation, create_invitation
from account_hub.services.memberships import list_members
from account_hub.services.organizations import create_org, list_user_orgs
from account_hub.services.users import get_or_create_federated_user
from account_hub_shared.schemas.common import Role
from account_hub_shared.schemas.entities import EntityCreateRequest
from account_hub_shared.schemas.groups import GroupCreateRequest
from account_hub_shared.schemas.organizations import OrgCreateRequest

log = structlog.get_logger()

DEMO_ORG = "Acme Robotics"

USERS = [
    # email, name, role in the demo org, app grants for EXTERNAL
    ("alice@acme.dev", "Alice", Role.OWNER, None),
    ("bob@acme.dev", "Bob", Role.ADMIN, None),
    ("carol@acme.dev", "Carol", Role.MEMBER, None),
    ("dave@partner.dev", "Dave", Role.EXTERNAL, ["nota"]),
]


async def seed():
    async with get_session_context() as session:
        users = {}
        for email, name, _, _ in USERS:
            users[email] = await get_or_create_federated_user(email, session, name=name)

        owner = users["alice@acme.dev"]
        existing = [o for o in await list_user_orgs(owner.id, session) if o.name == DEMO_ORG]
        if existing:
            log.info("seed.skipped", org_id=str(existing[0].id), reason="already seeded")
            return

        org, _ = await create_org(OrgCreateRequest(name=DEMO_ORG), owner.id, session)
        await create_entity(
            owner.id,
            org.id,
            EntityCreateRequest(name="Acme Robotics GmbH", legal_name="Acme Robotics GmbH", country="DE"),
            session,
        )

        for email, _, role, app_slugs in USERS:
            if role == Role.OWNER:
                continue
            invitation = await create_invitation(
                owner.id, org.id, email, session, role=role, app_slugs=app_slugs
            )
            await accept_invitation(users[email].id, invitation.token, session)

        engineering = await create_group(
            owner.id, org.id, GroupCreateRequest(name="Engineering", description="Builds the robots"), session
        )
        await set_group_app_access(owner.id, org.id, engineering.id, ["projects", "inventory"], session)
        members = {m.user.email: m for m in await list_members(owner.id, org.id, session)}
        await add_group_member(owner.id, org.id, engineering.id, members["carol@acme.dev"].id, session)

        await record_subscription_status(org.id, "nota", "active", session)

    log.info("seed.completed", org=DEMO_ORG, users=len(USERS))


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.log_level, "text")
    asyncio.run(seed())
