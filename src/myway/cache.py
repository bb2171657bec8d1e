"""Redis connection pool — shared by the rate limiter and the health check.

Learn: Redis is optional. init_redis() runs in the app lifespan; when it
fails the app still starts and get_redis() raises, which the rate limiter
treats as "no limiting". Tests never call init_redis().
"""

from typing import Optional

import redis.asyncio as aioredis

from myway.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Open the pool and ping once so a dead server fails start-up loudly."""
    global _redis
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
