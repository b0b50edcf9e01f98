"""
Invitation service: time-boxed, single-use membership offers.

An invitation is pending until it expires (checked lazily against
``expires_at``), is withdrawn, or is accepted. Re-inviting an address whose
invitation expired replaces the stale row.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.catalog import validate_app_slugs
from account_hub.core.config import get_settings
from account_hub.core.errors import Forbidden, InvariantViolation, NotFound, Unauthenticated, ValidationFailed
from account_hub.models.base import ensure_utc, utcnow
from account_hub.models.invitation import Invitation, decode_app_slugs, encode_app_slugs
from account_hub.models.org_member import MemberAppAccess, OrgMember
from account_hub.models.user import User
from account_hub.services.memberships import get_membership, require_manager, require_membership

from account_hub_shared.schemas.common import ASSIGNABLE_ROLES, Role

log = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_expired(invitation: Invitation) -> bool:
    return ensure_utc(invitation.expires_at) <= utcnow()


async def _member_with_email(org_id: uuid.UUID, email: str, session: AsyncSession) -> Optional[OrgMember]:
    result = await session.execute(
        select(OrgMember)
        .join(User, User.id == OrgMember.user_id)
        .where(OrgMember.org_id == org_id, User.email == email)
    )
    return result.scalar_one_or_none()


async def create_invitation(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    email: str,
    session: AsyncSession,
    role: Role | str = Role.MEMBER,
    app_slugs: Optional[list[str]] = None,
) -> Invitation:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "invite members")

    try:
        role = Role(role)
    except ValueError:
        raise ValidationFailed(f"Unknown role: {role}")
    if role not in ASSIGNABLE_ROLES:
        raise ValidationFailed("Role must be ADMIN, MEMBER or EXTERNAL")

    slugs: list[str] = []
    if role == Role.EXTERNAL:
        slugs = validate_app_slugs(app_slugs, required=True)

    email = normalize_email(email)
    if not email:
        raise ValidationFailed("Email is required")

    if await _member_with_email(org_id, email, session):
        raise InvariantViolation("User is already a member of this organization")

    result = await session.execute(
        select(Invitation).where(Invitation.org_id == org_id, Invitation.email == email)
    )
    existing = result.scalar_one_or_none()
    if existing:
        if not is_expired(existing):
            raise InvariantViolation("An invitation is already pending for this email")
        await session.delete(existing)
        await session.flush()
        log.info("invitation.replaced_expired", org_id=str(org_id), invitation_id=str(existing.id))

    now = utcnow()
    invitation = Invitation(
        org_id=org_id,
        email=email,
        role=role.value,
        app_slugs=encode_app_slugs(slugs),
        token=secrets.token_urlsafe(32),
        expires_at=now + timedelta(days=get_settings().invitation_expiry_days),
        invited_by=actor_id,
        created_at=now,
    )
    session.add(invitation)
    await session.flush()

    log.info(
        "invitation.created",
        org_id=str(org_id),
        invitation_id=str(invitation.id),
        role=role.value,
        by=str(actor_id),
    )
    return invitation


async def list_invitations(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> list[Invitation]:
    """Unexpired invitations, newest first."""
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "view invitations")
    result = await session.execute(
        select(Invitation)
        .where(Invitation.org_id == org_id, Invitation.expires_at > utcnow())
        .order_by(Invitation.created_at.desc())
    )
    return list(result.scalars().all())


async def withdraw_invitation(
    actor_id: uuid.UUID, org_id: uuid.UUID, invitation_id: uuid.UUID, session: AsyncSession
) -> None:
    actor = await require_membership(org_id, actor_id, session)
    require_manager(actor, "withdraw invitations")
    result = await session.execute(
        select(Invitation).where(Invitation.id == invitation_id, Invitation.org_id == org_id)
    )
    invitation = result.scalar_one_or_none()
    if not invitation:
        raise NotFound("Invitation not found")

    await session.delete(invitation)
    await session.flush()
    log.info("invitation.withdrawn", org_id=str(org_id), invitation_id=str(invitation_id))


async def accept_invitation(
    user_id: uuid.UUID, token: str, session: AsyncSession
) -> tuple[OrgMember, list[str]]:
    """Turn an invitation into a membership. The token is consumed."""
    user = await session.get(User, user_id)
    if not user:
        raise Unauthenticated("User not found")

    result = await session.execute(select(Invitation).where(Invitation.token == token))
    invitation = result.scalar_one_or_none()
    if not invitation:
        raise NotFound("Invitation not found")
    if is_expired(invitation):
        raise InvariantViolation("Invitation has expired")
    if normalize_email(user.email) != invitation.email:
        raise Forbidden("This invitation was sent to a different email address")
    if await get_membership(invitation.org_id, user.id, session):
        raise InvariantViolation("You are already a member of this organization")

    role = Role(invitation.role)
    slugs: list[str] = []
    if role == Role.EXTERNAL:
        slugs = decode_app_slugs(invitation.app_slugs)
        if not slugs:
            raise InvariantViolation("External invitation carries no app access")

    member = OrgMember(user_id=user.id, org_id=invitation.org_id, role=role.value)
    session.add(member)
    await session.flush()
    for slug in slugs:
        session.add(MemberAppAccess(member_id=member.id, app_slug=slug))

    await session.delete(invitation)
    await session.flush()

    log.info(
        "invitation.accepted",
        org_id=str(member.org_id),
        member_id=str(member.id),
        role=role.value,
    )
    return member, slugs
