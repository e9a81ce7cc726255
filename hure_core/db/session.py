# hure_core/db/session.py
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hure_core.core.config import settings


def engine_options(url: str) -> dict[str, Any]:
    """
    Pool settings for the configured backend.

    Postgres (asyncpg) sits behind a pooler that drops idle connections, so
    connections are pinged and recycled. SQLite (aiosqlite, local dev and
    tests) has no server side to drop anything and rejects pool sizing.
    """
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 300}


def build_engine(url: str | None = None) -> AsyncEngine:
    # CLEAN URL: asyncpg rejects sslmode/channel_binding query params
    url = url or settings.DATABASE_URL_ASYNC_CLEAN
    return create_async_engine(url, echo=False, **engine_options(url))


engine: AsyncEngine = build_engine()

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One AsyncSession per request. Uncommitted work is rolled back when the
    handler raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
