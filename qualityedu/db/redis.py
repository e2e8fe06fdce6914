"""Redis connection pool.

Same shape as engine.py: a client exists only when REDIS_URL is set.
Redis backs the email task queue; every consumer checks ``redis_pool``
for None and falls back to its in-memory implementation.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from qualityedu.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Ping on startup, close the pool on shutdown.

    An unreachable Redis is logged but does not stop the API: enqueueing
    a notification then fails and is logged by the notifier, and nothing
    else depends on Redis.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured, task queue is in-memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        logger.exception("Redis connection failed on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
