"""Health check endpoint.

Learn: Verifies the server is up and its dependencies answer. The
database is checked through the request session (so tests exercise
their own SQLite session). Redis is optional; when it was never
initialised the check reports "disabled" and does not degrade health.
"""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from myway import __version__
from myway.cache import get_redis
from myway.db.engine import get_db

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity. Never raises."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning("health.database_failed", error=str(e))
        checks["database"] = f"error: {e}"

    try:
        redis = get_redis()
    except RuntimeError:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as e:
            logger.warning("health.redis_failed", error=str(e))
            checks["redis"] = f"error: {e}"

    status = "degraded" if any(
        str(v).startswith("error") for k, v in checks.items() if k != "version"
    ) else "healthy"

    return {"status": status, **checks}
