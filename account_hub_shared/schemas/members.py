"""Membership management schemas: member listing, role changes, direct app grants."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import Role, UserSummary


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class MemberRoleUpdateRequest(BaseModel):
    """Move a member to another role. EXTERNAL requires app_slugs."""
    role: Role
    app_slugs: Optional[List[str]] = None


class AppAccessUpdateRequest(BaseModel):
    """Replace the full set of app grants."""
    app_slugs: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class GroupRef(BaseModel):
    id: uuid.UUID
    name: str


class MemberResponse(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    role: Role
    user: UserSummary
    app_access: List[str] = Field(default_factory=list)
    groups: List[GroupRef] = Field(default_factory=list)
    created_at: datetime


class MemberListResponse(BaseModel):
    data: List[MemberResponse]


class MemberAppAccessResponse(BaseModel):
    member_id: uuid.UUID
    app_slugs: List[str]
