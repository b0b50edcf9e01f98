"""User account schemas: registration and account deletion."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserRegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: Optional[str] = Field(default=None, max_length=200)


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}


class UserRegisterResponse(BaseModel):
    success: bool = True
    user: UserResponse


class AccountDeleteRequest(BaseModel):
    confirmation: str = ""
    password: Optional[str] = None
