"""Invitation schemas (pending, time-boxed membership grants)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .common import Role


class InvitationCreateRequest(BaseModel):
    email: EmailStr
    role: Role = Role.MEMBER
    app_slugs: Optional[List[str]] = None


class InvitationResponse(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    email: str
    role: Role
    app_slugs: List[str] = Field(default_factory=list)
    expires_at: datetime
    created_at: datetime


class InvitationCreateResponse(InvitationResponse):
    token: str  # shown to the inviter once so it can be delivered


class InvitationListResponse(BaseModel):
    data: List[InvitationResponse]


class InvitationAcceptResponse(BaseModel):
    org_id: uuid.UUID
    member_id: uuid.UUID
    role: Role
    app_slugs: List[str] = Field(default_factory=list)
