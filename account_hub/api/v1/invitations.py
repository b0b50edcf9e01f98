"""
Invitation endpoints.

POST   /api/v1/orgs/{orgId}/invitations                  Invite an email address
GET    /api/v1/orgs/{orgId}/invitations                  Pending invitations
DELETE /api/v1/orgs/{orgId}/invitations/{invitation_id}  Withdraw
POST   /api/v1/invitations/{token}/accept                Accept as the signed-in user
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_current_user_id
from account_hub.core.database import get_session
from account_hub.models.invitation import Invitation, decode_app_slugs
from account_hub.services import invitations as invitation_service
from account_hub_shared.schemas.common import Role, SuccessResponse
from account_hub_shared.schemas.invitations import (
    InvitationAcceptResponse,
    InvitationCreateRequest,
    InvitationCreateResponse,
    InvitationListResponse,
    InvitationResponse,
)

router = APIRouter()
accept_router = APIRouter()


def _to_response(invitation: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        org_id=invitation.org_id,
        email=invitation.email,
        role=Role(invitation.role),
        app_slugs=decode_app_slugs(invitation.app_slugs),
        expires_at=invitation.expires_at,
        created_at=invitation.created_at,
    )


@router.get("", response_model=InvitationListResponse)
async def list_invitations_endpoint(
    orgId: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    invitations = await invitation_service.list_invitations(user_id, orgId, session)
    return InvitationListResponse(data=[_to_response(i) for i in invitations])


@router.post("", response_model=InvitationCreateResponse, status_code=201)
async def create_invitation_endpoint(
    orgId: uuid.UUID,
    body: InvitationCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    invitation = await invitation_service.create_invitation(
        user_id, orgId, body.email, session, role=body.role, app_slugs=body.app_slugs
    )
    return InvitationCreateResponse(
        **_to_response(invitation).model_dump(), token=invitation.token
    )


@router.delete("/{invitation_id}", response_model=SuccessResponse)
async def withdraw_invitation_endpoint(
    orgId: uuid.UUID,
    invitation_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    await invitation_service.withdraw_invitation(user_id, orgId, invitation_id, session)
    return SuccessResponse()


@accept_router.post("/invitations/{token}/accept", response_model=InvitationAcceptResponse)
async def accept_invitation_endpoint(
    token: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    member, slugs = await invitation_service.accept_invitation(user_id, token, session)
    return InvitationAcceptResponse(
        org_id=member.org_id, member_id=member.id, role=Role(member.role), app_slugs=slugs
    )
