"""
Shared fixtures: an in-memory SQLite database per test, service-level
sessions, an HTTP client wired to the same database, and the demo "acme"
organization (alice OWNER, bob ADMIN).
"""

import os

os.environ.setdefault("HUB_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("HUB_LOG_LEVEL", "warning")

from dataclasses import dataclass

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import account_hub.models  # noqa: F401
from account_hub.core.config import get_settings
from account_hub.core.database import get_session
from account_hub.main import app
from account_hub.models.organization import Organization
from account_hub.models.org_member import OrgMember
from account_hub.models.user import User
from account_hub.services.invitations import accept_invitation, create_invitation
from account_hub.services.memberships import get_membership
from account_hub.services.organizations import create_org
from account_hub.services.users import get_or_create_federated_user
from account_hub_shared.schemas.common import Role
from account_hub_shared.schemas.organizations import OrgCreateRequest


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _get_test_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_token():
    """Sign an identity token the way the sign-in service does."""
    settings = get_settings()

    def _token(user_id) -> str:
        return jwt.encode({"sub": str(user_id)}, settings.secret_key, algorithm=settings.jwt_algorithm)

    return _token


@pytest.fixture
def auth_headers(make_token):
    """Build a Bearer header carrying a signed identity token for a user."""

    def _headers(user_id) -> dict:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def make_user(session):
    """Insert a bare user row (no personal org, so no implicit OWNER role)."""

    async def _make(email: str, name: str | None = None) -> User:
        user = User(email=email, name=name)
        session.add(user)
        await session.flush()
        return user

    return _make


@pytest.fixture
def make_account(session):
    """Create a user the way first sign-in does, personal org included."""

    async def _make(email: str, name: str | None = None) -> User:
        return await get_or_create_federated_user(email, session, name=name)

    return _make


@dataclass
class Acme:
    org: Organization
    alice: User
    bob: User
    alice_member: OrgMember
    bob_member: OrgMember


@pytest.fixture
async def acme(session, make_user) -> Acme:
    alice = await make_user("alice@acme.com", "Alice")
    bob = await make_user("bob@acme.com", "Bob")
    org, _ = await create_org(OrgCreateRequest(name="Acme"), alice.id, session)

    invitation = await create_invitation(alice.id, org.id, bob.email, session, role=Role.ADMIN)
    bob_member, _ = await accept_invitation(bob.id, invitation.token, session)

    alice_member = await get_membership(org.id, alice.id, session)
    await session.commit()
    return Acme(org=org, alice=alice, bob=bob, alice_member=alice_member, bob_member=bob_member)
