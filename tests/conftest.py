"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI without Postgres:

1. Each test gets its own aiosqlite engine on `sqlite+aiosqlite://`.
   StaticPool keeps a single connection alive, so the in-memory database
   survives across sessions for the duration of the test.
2. The schema is created with Base.metadata.create_all.
3. The app's get_db dependency is overridden to hand out that session,
   so services can commit() freely. The engine is dropped afterwards.

Env vars are set before `myway` is imported: settings are read once at
import time. bcrypt rounds are lowered so sign-ups stay fast.
"""

import os

os.environ.setdefault("MYWAY_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MYWAY_BCRYPT_ROUNDS", "4")
os.environ.setdefault("MYWAY_CREATE_SCHEMA_ON_STARTUP", "false")
os.environ.setdefault("MYWAY_ENVIRONMENT", "development")

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from myway.auth.dependencies import get_codec
from myway.auth.sessions import SessionManager
from myway.db.engine import get_db
from myway.db.models import Base
from myway.main import app

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session over a brand-new in-memory schema."""
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()
    await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with the app's get_db overridden. Auth is real."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def sessions(db_session):
    """SessionManager over the test session, cheap bcrypt."""
    return SessionManager(db_session, get_codec(), bcrypt_rounds=4)


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@myway.io"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def signup(client):
    """Factory: sign a user up through the API, return the session body."""

    async def _signup(prefix: str = "user", name: str = "Test User", password: str = "secret123"):
        r = await client.post(
            "/api/v1/auth/signup",
            json={"email": unique_email(prefix), "name": name, "password": password},
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _signup
