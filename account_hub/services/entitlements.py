"""
Entitlement resolution: which catalog apps a user may open, and which of
those are locked behind a subscription.

Resolution is read-only and re-reads the store on every call:

1. anonymous callers, and ids that no longer resolve to a user, get the
   public catalog with no subscription state
2. OWNER or ADMIN anywhere → the full catalog
3. otherwise the union of direct grants and group grants across all orgs
4. an app is locked when it's available, not free and no org has an
   active subscription to it
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.catalog import get_app, get_catalog
from account_hub.core.errors import NotFound, ValidationFailed
from account_hub.models.base import utcnow
from account_hub.models.group import GroupAppAccess, GroupMember
from account_hub.models.org_member import MemberAppAccess
from account_hub.models.organization import Organization
from account_hub.models.subscription import Subscription
from account_hub.models.user import User
from account_hub.services.memberships import list_user_memberships, user_summary

from account_hub_shared.schemas.common import (
    MANAGER_ROLES,
    VISIBLE_SUBSCRIPTION_STATUSES,
    AppStatus,
    OrgType,
    Role,
    SubscriptionStatus,
)
from account_hub_shared.schemas.entitlements import (
    AppDefinition,
    AppEntitlement,
    EntitlementResponse,
    OrgRole,
)

log = structlog.get_logger()


def _entitlement(app: AppDefinition, locked: Optional[bool]) -> AppEntitlement:
    return AppEntitlement(
        slug=app.slug,
        name=app.name,
        tagline=app.tagline,
        icon=app.icon,
        color=app.color,
        url=app.url,
        status=app.status,
        free=app.free,
        locked=locked,
    )


def is_locked(app: AppDefinition, subscribed: set[str]) -> bool:
    return app.status == AppStatus.AVAILABLE and not app.free and app.slug not in subscribed


async def accessible_app_slugs(member_ids: list[uuid.UUID], session: AsyncSession) -> set[str]:
    """Union of direct and group grants for the given memberships."""
    if not member_ids:
        return set()
    direct = await session.execute(
        select(MemberAppAccess.app_slug).where(MemberAppAccess.member_id.in_(member_ids))
    )
    via_groups = await session.execute(
        select(GroupAppAccess.app_slug)
        .join(GroupMember, GroupMember.group_id == GroupAppAccess.group_id)
        .where(GroupMember.member_id.in_(member_ids))
    )
    return set(direct.scalars().all()) | set(via_groups.scalars().all())


async def subscribed_app_slugs(org_ids: list[uuid.UUID], session: AsyncSession) -> set[str]:
    if not org_ids:
        return set()
    result = await session.execute(
        select(Subscription.app_slug).where(
            Subscription.org_id.in_(org_ids),
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        )
    )
    return set(result.scalars().all())


async def resolve_entitlements(
    user_id: Optional[uuid.UUID], session: AsyncSession
) -> EntitlementResponse:
    catalog = get_catalog()
    user = await session.get(User, user_id) if user_id is not None else None
    if user is None:
        if user_id is not None:
            log.info("entitlements.unknown_user", user_id=str(user_id))
        return EntitlementResponse(apps=[_entitlement(app, None) for app in catalog])

    memberships = await list_user_memberships(user.id, session)
    roles = [Role(member.role) for member, _ in memberships]
    full_access = any(role in MANAGER_ROLES for role in roles)

    if full_access:
        visible = list(catalog)
    else:
        accessible = await accessible_app_slugs([m.id for m, _ in memberships], session)
        # Catalog order wins; slugs that aren't in the catalog are dropped
        visible = [app for app in catalog if app.slug in accessible]

    subscribed = await subscribed_app_slugs([org.id for _, org in memberships], session)

    return EntitlementResponse(
        apps=[_entitlement(app, is_locked(app, subscribed)) for app in visible],
        user=user_summary(user),
        subscriptions=sorted(subscribed),
        organizations=[
            OrgRole(org_id=org.id, slug=org.slug, type=OrgType(org.type), role=Role(member.role))
            for member, org in memberships
        ],
        full_access=full_access,
    )


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

async def list_user_subscriptions(
    user_id: uuid.UUID, session: AsyncSession
) -> list[Subscription]:
    """Active, trialing and past-due subscriptions across the user's orgs, newest first."""
    memberships = await list_user_memberships(user_id, session)
    org_ids = [org.id for _, org in memberships]
    if not org_ids:
        return []
    result = await session.execute(
        select(Subscription)
        .where(
            Subscription.org_id.in_(org_ids),
            Subscription.status.in_([s.value for s in VISIBLE_SUBSCRIPTION_STATUSES]),
        )
        .order_by(Subscription.created_at.desc())
    )
    return list(result.scalars().all())


async def record_subscription_status(
    org_id: uuid.UUID,
    app_slug: str,
    status: str,
    session: AsyncSession,
    cancel_at_period_end: bool = False,
    current_period_end: Optional[datetime] = None,
) -> Subscription:
    """Upsert the billing status of one app for one org.

    Unknown status strings are stored as given; they simply never unlock
    anything.
    """
    if get_app(app_slug) is None:
        raise ValidationFailed(f"Unknown app slug: {app_slug}")
    if await session.get(Organization, org_id) is None:
        raise NotFound("Organization not found")

    result = await session.execute(
        select(Subscription).where(
            Subscription.org_id == org_id, Subscription.app_slug == app_slug
        )
    )
    subscription = result.scalar_one_or_none()
    if subscription is None:
        subscription = Subscription(org_id=org_id, app_slug=app_slug, status=status)
    else:
        subscription.status = status
        subscription.updated_at = utcnow()
    subscription.cancel_at_period_end = cancel_at_period_end
    subscription.current_period_end = current_period_end
    session.add(subscription)
    await session.flush()

    log.info("subscription.recorded", org_id=str(org_id), app=app_slug, status=status)
    return subscription
