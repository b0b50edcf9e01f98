"""
Navigation endpoint: the app catalog as seen by the caller.

Anonymous callers, and callers with a stale or invalid session, get the public
catalog. Signed-in callers get the apps they are entitled to, each flagged
``locked`` when a subscription is missing.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_optional_user_id
from account_hub.core.database import get_session
from account_hub.services.entitlements import resolve_entitlements
from account_hub_shared.schemas.entitlements import EntitlementResponse

router = APIRouter()


@router.get("/nav", response_model=EntitlementResponse)
async def nav_endpoint(
    user_id: Optional[uuid.UUID] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await resolve_entitlements(user_id, session)
