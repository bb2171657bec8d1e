"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The pooled engine and the signing secret are the only process-wide state.
Nothing else is cached between requests: membership is re-read every time.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from myway.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (local dev, tests) uses its own pool classes without size limits.
    if url.startswith("sqlite"):
        return {"echo": settings.debug}
    return {"echo": settings.debug, "pool_size": 5, "max_overflow": 15}


engine = create_async_engine(settings.database_url, **_engine_kwargs(settings.database_url))

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_schema() -> None:
    """Create all tables (idempotent). Used at start-up and by `myway init-db`."""
    from myway.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
