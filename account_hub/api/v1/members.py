"""
Member endpoints: listing, role changes, removal and direct app grants.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_current_user_id
from account_hub.core.database import get_session
from account_hub.services import memberships as member_service
from account_hub_shared.schemas.common import SuccessResponse
from account_hub_shared.schemas.members import (
    AppAccessUpdateRequest,
    MemberAppAccessResponse,
    MemberListResponse,
    MemberResponse,
    MemberRoleUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=MemberListResponse)
async def list_members_endpoint(
    orgId: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    members = await member_service.list_members(user_id, orgId, session)
    return MemberListResponse(data=members)


@router.patch("/{member_id}", response_model=MemberResponse)
async def change_role_endpoint(
    orgId: uuid.UUID,
    member_id: uuid.UUID,
    body: MemberRoleUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Change a member's role (Owner only) and return the updated member.

    EXTERNAL requires app_slugs.
    """
    member = await member_service.change_member_role(
        user_id, orgId, member_id, body.role, body.app_slugs, session
    )
    return await member_service.member_record(member, session)


@router.delete("/{member_id}", response_model=SuccessResponse)
async def remove_member_endpoint(
    orgId: uuid.UUID,
    member_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    await member_service.remove_member(user_id, orgId, member_id, session)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Direct app grants (EXTERNAL members only)
# ---------------------------------------------------------------------------


@router.get("/{member_id}/app-access", response_model=MemberAppAccessResponse)
async def get_app_access_endpoint(
    orgId: uuid.UUID,
    member_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    slugs = await member_service.get_member_app_access(user_id, orgId, member_id, session)
    return MemberAppAccessResponse(member_id=member_id, app_slugs=slugs)


@router.put("/{member_id}/app-access", response_model=MemberAppAccessResponse)
async def set_app_access_endpoint(
    orgId: uuid.UUID,
    member_id: uuid.UUID,
    body: AppAccessUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    slugs = await member_service.set_member_app_access(
        user_id, orgId, member_id, body.app_slugs, session
    )
    return MemberAppAccessResponse(member_id=member_id, app_slugs=slugs)
