"""Entity schemas (business sub-profiles, one marked default per org)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import SLUG_PATTERN


class EntityProfile(BaseModel):
    legal_name: Optional[str] = Field(default=None, max_length=200)
    tax_id: Optional[str] = Field(default=None, max_length=64)
    email: Optional[str] = Field(default=None, max_length=320)
    phone: Optional[str] = Field(default=None, max_length=64)
    address: Optional[str] = Field(default=None, max_length=500)
    country: Optional[str] = Field(default=None, max_length=2, description="ISO 3166-1 alpha-2")


class EntityCreateRequest(EntityProfile):
    name: str = Field(..., min_length=1, max_length=200)
    is_default: bool = False


class EntityUpdateRequest(EntityProfile):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=50, pattern=SLUG_PATTERN)
    is_default: Optional[bool] = None


class EntityResponse(EntityProfile):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    slug: str
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
