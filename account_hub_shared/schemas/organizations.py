"""
Organization-related Pydantic schemas shared between the hub server and its clients.

Covers: org create/update/delete requests, org detail and list responses.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import SLUG_PATTERN, OrgType, Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    type: OrgType = Field(default=OrgType.BUSINESS, description="Only BUSINESS orgs can be created")


class OrgUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(
        None,
        min_length=1,
        max_length=50,
        pattern=SLUG_PATTERN,
        description="URL-safe org identifier, globally unique",
    )
    type: Optional[OrgType] = None


class ConfirmDeleteRequest(BaseModel):
    """Destructive operations require the caller to type DELETE."""
    confirmation: str = ""


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    type: OrgType
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EntitySummary(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    is_default: bool

    model_config = {"from_attributes": True}


class OrgCreateResponse(OrgResponse):
    entities: list[EntitySummary] = Field(default_factory=list)


class OrgListItem(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    type: OrgType
    role: Role  # the requesting user's role in this org
    member_count: int


class OrgListResponse(BaseModel):
    data: list[OrgListItem]


OrgCreateResponse.model_rebuild()
