"""
Database engine and the unit-of-work session scope.

Services only flush. The session scope below commits once the caller is done
and rolls the whole request back on any error, so a multi-step mutation
(role + grant rewrite, default promotion + delete, org cascade) either lands
completely or not at all.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from account_hub.core.config import get_settings

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    options = {"echo": settings.debug, "future": True}
    if make_url(database_url).get_backend_name() != "sqlite":
        # long-lived Postgres connections get dropped by proxies and failovers
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Create all tables for local development; deployed databases use Alembic."""
    import account_hub.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def ping_db() -> bool:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


@asynccontextmanager
async def get_session_context():
    """One transaction: commit on clean exit, roll back and re-raise otherwise."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session scope per request."""
    async with get_session_context() as session:
        yield session
