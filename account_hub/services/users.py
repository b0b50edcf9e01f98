"""
User account service: registration, federated sign-in and account deletion.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.auth import hash_password, verify_password
from account_hub.core.errors import Forbidden, InvariantViolation, NotFound, ValidationFailed
from account_hub.models.invitation import Invitation
from account_hub.models.user import User
from account_hub.services.memberships import count_owners, list_user_memberships, purge_member
from account_hub.services.organizations import DELETE_CONFIRMATION, provision_org, purge_organization

from account_hub_shared.schemas.common import OrgType, Role

log = structlog.get_logger()


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == _normalize_email(email)))
    return result.scalar_one_or_none()


async def _create_with_personal_org(
    email: str,
    name: Optional[str],
    session: AsyncSession,
    password_hash: Optional[str] = None,
    image: Optional[str] = None,
) -> User:
    user = User(email=email, name=name, image=image, password_hash=password_hash)
    session.add(user)
    await session.flush()

    org = await provision_org(
        name or "Personal",
        OrgType.INDIVIDUAL,
        user.id,
        session,
        slug_source=name or email.split("@")[0],
    )
    log.info("user.created", user_id=str(user.id), personal_org_id=str(org.id))
    return user


async def register_user(
    email: str, password: str, session: AsyncSession, name: Optional[str] = None
) -> User:
    """Create a credential account and its personal organization."""
    email = _normalize_email(email)
    if not email or not password:
        raise ValidationFailed("Email and password are required")
    if await get_user_by_email(email, session):
        raise InvariantViolation("An account with this email already exists")

    name = (name or "").strip() or None
    return await _create_with_personal_org(
        email, name, session, password_hash=hash_password(password)
    )


async def get_or_create_federated_user(
    email: str,
    session: AsyncSession,
    name: Optional[str] = None,
    image: Optional[str] = None,
) -> User:
    """First federated sign-in creates the account; later ones return it."""
    user = await get_user_by_email(email, session)
    if user:
        return user
    return await _create_with_personal_org(
        _normalize_email(email), (name or "").strip() or None, session, image=image
    )


async def delete_account(
    user_id: uuid.UUID,
    confirmation: str,
    session: AsyncSession,
    password: Optional[str] = None,
) -> list[uuid.UUID]:
    """Delete a user and every org they alone own. Returns the deleted org ids.

    Orgs with another OWNER survive; only this user's membership goes.
    """
    user = await session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    if confirmation != DELETE_CONFIRMATION:
        raise ValidationFailed('Type "DELETE" to confirm')
    if user.password_hash:
        if not password:
            raise ValidationFailed("Password is required to delete this account")
        if not verify_password(password, user.password_hash):
            raise Forbidden("Incorrect password")

    deleted_orgs: list[uuid.UUID] = []
    for member, org in await list_user_memberships(user.id, session):
        if Role(member.role) == Role.OWNER and await count_owners(org.id, session) == 1:
            deleted_orgs.append(org.id)
            await purge_organization(org, session)
        else:
            await purge_member(member, session)

    await session.execute(
        update(Invitation)
        .where(Invitation.invited_by == user.id)
        .values(invited_by=None)
        .execution_options(synchronize_session="fetch")
    )
    await session.delete(user)
    await session.flush()

    log.info("user.deleted", user_id=str(user_id), deleted_orgs=[str(o) for o in deleted_orgs])
    return deleted_orgs
