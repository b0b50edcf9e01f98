"""
Authentication for the account hub.

Supports:
- Identity: a signed JWT issued by the sign-in service, read from the session
  cookie or an ``Authorization: Bearer`` header. The ``sub`` claim is the
  caller's user id; the core treats it as opaque.
- Password hashing for credential accounts (registration, account deletion).

Authorization (who may do what inside an organization) is decided by the
service layer, never here.
"""

from __future__ import annotations

import uuid
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from account_hub.core.config import get_settings
from account_hub.core.database import get_session
from account_hub.core.errors import Unauthenticated
from account_hub.models.user import User

log = structlog.get_logger()
settings = get_settings()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# Identity tokens
# ---------------------------------------------------------------------------

def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(settings.session_cookie_name)


def _user_id_from_token(token: str) -> uuid.UUID:
    try:
        payload = decode_jwt(token)
        return uuid.UUID(str(payload["sub"]))
    except (jwt.PyJWTError, KeyError, ValueError):
        raise Unauthenticated("Invalid or expired session")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

async def get_optional_user_id(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
) -> Optional[uuid.UUID]:
    """Caller's user id, or None for anonymous requests.

    Read-only endpoints only: an invalid or expired token is treated as no
    identity at all, so a stale cookie still gets the public view.
    """
    token = _extract_token(request, authorization)
    if not token:
        return None
    try:
        return _user_id_from_token(token)
    except Unauthenticated:
        log.info("auth.stale_session_ignored", path=request.url.path)
        return None


async def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
) -> uuid.UUID:
    """Caller's user id; a missing or invalid identity is never treated as anonymous."""
    token = _extract_token(request, authorization)
    if not token:
        raise Unauthenticated()
    return _user_id_from_token(token)


async def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Caller's User row; a token for a deleted user is no longer valid."""
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        log.info("auth.unknown_user", user_id=str(user_id))
        raise Unauthenticated("User not found")
    return user
