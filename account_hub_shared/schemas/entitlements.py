"""Entitlement (navigation) and subscription schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import AppStatus, OrgType, Role, UserSummary


class AppDefinition(BaseModel):
    """One entry of the static app catalog."""
    slug: str
    name: str
    tagline: str = ""
    icon: str = ""
    color: str = "#000000"
    url: str
    status: AppStatus = AppStatus.COMING_SOON
    free: bool = False
    monthly_price: Optional[float] = None


class AppEntitlement(BaseModel):
    slug: str
    name: str
    tagline: str
    icon: str
    color: str
    url: str
    status: AppStatus
    free: bool
    # None for anonymous callers: no subscription state is reported
    locked: Optional[bool] = None


class OrgRole(BaseModel):
    org_id: uuid.UUID
    slug: str
    type: OrgType
    role: Role


class EntitlementResponse(BaseModel):
    apps: List[AppEntitlement]
    user: Optional[UserSummary] = None
    subscriptions: List[str] = Field(default_factory=list)
    organizations: List[OrgRole] = Field(default_factory=list)
    full_access: bool = False


class SubscriptionResponse(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    app_slug: str
    status: str
    cancel_at_period_end: bool
    current_period_end: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
