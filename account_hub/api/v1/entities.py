"""
Entity endpoints (business organizations only).

Exactly one entity per org is the default; setting ``is_default`` on one
entity clears it on the others in the same request.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_hub.core.auth import get_current_user_id
from account_hub.core.database import get_session
from account_hub.services import entities as entity_service
from account_hub_shared.schemas.common import SuccessResponse
from account_hub_shared.schemas.entities import (
    EntityCreateRequest,
    EntityResponse,
    EntityUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=List[EntityResponse])
async def list_entities_endpoint(
    orgId: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await entity_service.list_entities(user_id, orgId, session)


@router.post("", response_model=EntityResponse, status_code=201)
async def create_entity_endpoint(
    orgId: uuid.UUID,
    body: EntityCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await entity_service.create_entity(user_id, orgId, body, session)


@router.get("/{entity_id}", response_model=EntityResponse)
async def get_entity_endpoint(
    orgId: uuid.UUID,
    entity_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await entity_service.get_entity(user_id, orgId, entity_id, session)


@router.patch("/{entity_id}", response_model=EntityResponse)
async def update_entity_endpoint(
    orgId: uuid.UUID,
    entity_id: uuid.UUID,
    body: EntityUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await entity_service.update_entity(user_id, orgId, entity_id, body, session)


@router.delete("/{entity_id}", response_model=SuccessResponse)
async def delete_entity_endpoint(
    orgId: uuid.UUID,
    entity_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    await entity_service.delete_entity(user_id, orgId, entity_id, session)
    return SuccessResponse()
