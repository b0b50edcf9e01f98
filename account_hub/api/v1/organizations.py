"""
Organization API endpoints.

GET    /api/v1/orgs            List orgs for authenticated user
POST   /api/v1/orgs            Create a new business org
GET    /api/v1/orgs/{orgId}    Get org details
PATCH  /api/v1/orgs/{orgId}    Update org name/slug (owner only)
DELETE /api/v1/orgs/{orgId}    Delete org and everything it owns (sole owner only)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_current_user_id
from account_hub.core.database import get_session
from account_hub.services import organizations as org_service
from account_hub_shared.schemas.common import SuccessResponse
from account_hub_shared.schemas.organizations import (
    ConfirmDeleteRequest,
    EntitySummary,
    OrgCreateRequest,
    OrgCreateResponse,
    OrgListResponse,
    OrgResponse,
    OrgUpdateRequest,
)

# ---------------------------------------------------------------------------
# Non-org-scoped routes (no orgId in path)
# ---------------------------------------------------------------------------
router_global = APIRouter()


@router_global.get("/orgs", response_model=OrgListResponse, tags=["Organizations"])
async def list_orgs(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """List orgs the authenticated user belongs to."""
    items = await org_service.list_user_orgs(user_id, session)
    return OrgListResponse(data=items)


@router_global.post("/orgs", response_model=OrgCreateResponse, status_code=201, tags=["Organizations"])
async def create_org(
    body: OrgCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its owner."""
    org, entities = await org_service.create_org(body, user_id, session)
    return OrgCreateResponse(
        **OrgResponse.model_validate(org).model_dump(),
        entities=[EntitySummary.model_validate(e) for e in entities],
    )


# ---------------------------------------------------------------------------
# Org-scoped routes (orgId in path)
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("", response_model=OrgResponse, tags=["Organizations"])
async def get_org(
    orgId: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.get_org_detail(user_id, orgId, session)


@router_scoped.patch("", response_model=OrgResponse, tags=["Organizations"])
async def update_org(
    orgId: uuid.UUID,
    body: OrgUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Update org name or slug (Owner only). The org type cannot change."""
    return await org_service.update_org(user_id, orgId, body, session)


@router_scoped.delete("", response_model=SuccessResponse, tags=["Organizations"])
async def delete_org(
    orgId: uuid.UUID,
    body: ConfirmDeleteRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Delete the org. Requires ``{"confirmation": "DELETE"}`` and a sole owner."""
    await org_service.delete_org(user_id, orgId, body.confirmation, session)
    return SuccessResponse()
