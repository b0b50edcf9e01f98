"""
Billing endpoints (read-only; checkout and portal live with the payment provider).
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_current_user_id
from account_hub.core.database import get_session
from account_hub.services.entitlements import list_user_subscriptions
from account_hub_shared.schemas.entitlements import SubscriptionResponse

router = APIRouter()


@router.get("/subscriptions", response_model=List[SubscriptionResponse])
async def list_subscriptions_endpoint(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await list_user_subscriptions(user_id, session)
