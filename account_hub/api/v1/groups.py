"""
Group endpoints: CRUD, group membership and group app grants.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_current_user_id
from account_hub.core.database import get_session
from account_hub.services import groups as group_service
from account_hub_shared.schemas.common import SuccessResponse
from account_hub_shared.schemas.groups import (
    GroupAppAccessResponse,
    GroupCreateRequest,
    GroupDetailResponse,
    GroupListResponse,
    GroupMemberAddRequest,
    GroupMemberListResponse,
    GroupMemberResponse,
    GroupResponse,
    GroupUpdateRequest,
)
from account_hub_shared.schemas.members import AppAccessUpdateRequest

router = APIRouter()


# ---------------------------------------------------------------------------
# Group CRUD
# ---------------------------------------------------------------------------


@router.get("", response_model=GroupListResponse)
async def list_groups_endpoint(
    orgId: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    groups = await group_service.list_groups(user_id, orgId, session)
    return GroupListResponse(groups=groups)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group_endpoint(
    orgId: uuid.UUID,
    body: GroupCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await group_service.create_group(user_id, orgId, body, session)


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await group_service.get_group(user_id, orgId, group_id, session)


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    body: GroupUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await group_service.update_group(user_id, orgId, group_id, body, session)


@router.delete("/{group_id}", response_model=SuccessResponse)
async def delete_group_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    await group_service.delete_group(user_id, orgId, group_id, session)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Group members
# ---------------------------------------------------------------------------


@router.get("/{group_id}/members", response_model=GroupMemberListResponse)
async def list_group_members_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    members = await group_service.list_group_members(user_id, orgId, group_id, session)
    return GroupMemberListResponse(members=members)


@router.post("/{group_id}/members", response_model=GroupMemberResponse, status_code=201)
async def add_group_member_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    body: GroupMemberAddRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await group_service.add_group_member(user_id, orgId, group_id, body.member_id, session)


@router.delete("/{group_id}/members/{member_id}", response_model=SuccessResponse)
async def remove_group_member_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    member_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    await group_service.remove_group_member(user_id, orgId, group_id, member_id, session)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Group app grants
# ---------------------------------------------------------------------------


@router.get("/{group_id}/app-access", response_model=GroupAppAccessResponse)
async def get_group_app_access_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    slugs = await group_service.get_group_app_access(user_id, orgId, group_id, session)
    return GroupAppAccessResponse(app_slugs=slugs)


@router.put("/{group_id}/app-access", response_model=GroupAppAccessResponse)
async def set_group_app_access_endpoint(
    orgId: uuid.UUID,
    group_id: uuid.UUID,
    body: AppAccessUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Replace the group's app grants. An empty list revokes all of them."""
    slugs = await group_service.set_group_app_access(
        user_id, orgId, group_id, body.app_slugs, session
    )
    return GroupAppAccessResponse(app_slugs=slugs)
