"""
Redis caching service for the advisory availability preview.

CACHING STRATEGY
================

What we cache:
  - The tier occupancy snapshot (level -> admitted count) under "tiers:occupancy"

Why:
  - Every visit to the registration form asks "which tier would this code get?"
  - The answer is advisory only: the admission protocol re-reads the ledger
    inside its own transaction before claiming a seat, so a stale preview
    can never cause an oversell

Invalidation strategy:
  - On every successful admission and on the admin reset
  - Short TTL as a safety net (REDIS_CACHE_TTL, a few seconds)

What we never cache:
  - The admin tier report (operators need the persisted truth)
  - Anything read inside the admission commit path

If Redis is disabled or unreachable every call degrades to a cache miss.
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

OCCUPANCY_KEY = "tiers:occupancy"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_cached_occupancy() -> Optional[dict[int, int]]:
    """Retrieve the cached occupancy snapshot."""
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(OCCUPANCY_KEY)
        record_cache_operation("get", "hit" if data else "miss")
        if data:
            logger.debug("cache_hit", key=OCCUPANCY_KEY)
            return {int(level): count for level, count in json.loads(data).items()}
        logger.debug("cache_miss", key=OCCUPANCY_KEY)
    except Exception as e:
        record_cache_operation("get", "error")
        redis_connection_errors.inc()
        logger.error("cache_get_error", key=OCCUPANCY_KEY, error=str(e))

    return None


async def set_cached_occupancy(occupancy: dict[int, int]) -> None:
    """Cache the occupancy snapshot with TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(OCCUPANCY_KEY, settings.REDIS_CACHE_TTL, json.dumps(occupancy))
        record_cache_operation("set", "ok")
        logger.debug("cache_set", key=OCCUPANCY_KEY, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        record_cache_operation("set", "error")
        redis_connection_errors.inc()
        logger.error("cache_set_error", key=OCCUPANCY_KEY, error=str(e))


async def invalidate_occupancy_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.delete(OCCUPANCY_KEY)
        record_cache_operation("invalidate", "ok")
        logger.info("cache_invalidated", key=OCCUPANCY_KEY)
    except Exception as e:
        record_cache_operation("invalidate", "error")
        redis_connection_errors.inc()
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "hit_rate": (
                round(
                    info.get("keyspace_hits", 0)
                    / max(info.get("keyspace_hits", 0) + info.get("keyspace_misses", 0), 1)
                    * 100,
                    2,
                )
            ),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
