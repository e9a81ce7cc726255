from __future__ import annotations

import os
import uuid

# Settings are read at import time; default to an in-memory database.
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from hure_core.core.config import settings
from hure_core.core.security import create_access_token
from hure_core.db.session import get_db

# Ensure Base + models are registered before create_all
from hure_core.db.base import Base  # noqa: F401
import hure_core.models  # noqa: F401


def _is_postgres(url: str) -> bool:
    return url.startswith("postgresql")


# ---------------------------------------------------------
# Database config
# ---------------------------------------------------------
@pytest.fixture(scope="session")
def database_url_async() -> str:
    return os.environ["DATABASE_URL_ASYNC"]


@pytest.fixture()
def test_schema_name() -> str:
    return f"test_{uuid.uuid4().hex}"


# ---------------------------------------------------------
# Engine + schema lifecycle (one isolated database per test)
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(database_url_async: str, test_schema_name: str):
    if _is_postgres(database_url_async):
        engine = create_async_engine(
            settings.DATABASE_URL_ASYNC_CLEAN,
            poolclass=NullPool,
            connect_args={"server_settings": {"search_path": test_schema_name}},
        )
        async with engine.begin() as conn:
            await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{test_schema_name}"'))
            await conn.execute(text(f'SET search_path TO "{test_schema_name}"'))
            await conn.run_sync(Base.metadata.create_all)

        yield engine

        async with engine.begin() as conn:
            await conn.execute(text(f'DROP SCHEMA IF EXISTS "{test_schema_name}" CASCADE'))
    else:
        # one shared connection so the in-memory database outlives each session
        engine = create_async_engine(
            database_url_async,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------
# Settings: no outbound email, no auth bypass, dev environment
# ---------------------------------------------------------
@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    monkeypatch.setattr(settings, "BREVO_API_KEY", None)
    monkeypatch.setattr(settings, "SKIP_AUTH", False)
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    yield


# ---------------------------------------------------------
# DB session for assertions / setup
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & assertions ONLY.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from hure_core.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture()
def superadmin_headers() -> dict[str, str]:
    token = create_access_token(
        subject="sa-1",
        email="admin@hure.com",
        role="superadmin",
        name="Platform Admin",
    )
    return {"Authorization": f"Bearer {token}"}
