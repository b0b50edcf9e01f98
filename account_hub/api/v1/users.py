"""
User account endpoints: registration and account deletion.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_current_user
from account_hub.core.database import get_session
from account_hub.models.user import User
from account_hub.services import users as user_service
from account_hub_shared.schemas.common import SuccessResponse
from account_hub_shared.schemas.users import (
    AccountDeleteRequest,
    UserRegisterRequest,
    UserRegisterResponse,
    UserResponse,
)

router = APIRouter()


@router.post("/register", response_model=UserRegisterResponse, status_code=201)
async def register_endpoint(
    body: UserRegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create an account with a password; a personal organization comes with it."""
    user = await user_service.register_user(body.email, body.password, session, name=body.name)
    return UserRegisterResponse(user=UserResponse.model_validate(user))


@router.delete("/account", response_model=SuccessResponse)
async def delete_account_endpoint(
    body: AccountDeleteRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Delete the caller's account and every organization they alone own."""
    await user_service.delete_account(user.id, body.confirmation, session, password=body.password)
    return SuccessResponse()
