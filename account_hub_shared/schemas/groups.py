"""Group schemas: named member collections with their own app grants."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import Role, UserSummary


class GroupCreateRequest(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class GroupUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class GroupMemberAddRequest(BaseModel):
    member_id: uuid.UUID


class GroupResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    member_count: int = 0
    app_access: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class GroupListResponse(BaseModel):
    groups: List[GroupResponse]


class GroupMemberResponse(BaseModel):
    id: uuid.UUID  # the OrgMember id
    role: Role
    user: UserSummary
    added_at: datetime


class GroupDetailResponse(GroupResponse):
    members: List[GroupMemberResponse] = Field(default_factory=list)


class GroupMemberListResponse(BaseModel):
    members: List[GroupMemberResponse]


class GroupAppAccessResponse(BaseModel):
    app_slugs: List[str]
