"""
Redis caching service for catalog listings.

CACHING STRATEGY
================

What we cache:
  - Movie and theater listing responses (JSON-serialized)
  - Cache key pattern: "catalog:{namespace}:{sorted query params}"

Why:
  - Catalog listings are the most frequent read operation
  - The catalog changes rarely compared to bookings

Invalidation strategy:
  - Any create/update/delete in a namespace deletes every key under
    "catalog:{namespace}:" (SCAN by prefix)
  - TTL-based expiry as safety net

What we never cache:
  - Showtimes and bookings. Admission needs the live rows under lock, and a
    stale seat count served to a client is worse than a slow one.

Redis is advisory: when it is disabled or unreachable every call degrades to
a cache miss and the database answers.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from cinema_booking.core.config import get_settings
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
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


def _make_listing_key(namespace: str, params: dict) -> str:
    query = "&".join(f"{name}={params[name]}" for name in sorted(params))
    return f"catalog:{namespace}:{query}"


async def get_cached_listing(namespace: str, params: dict) -> Optional[Any]:
    client = await get_redis()
    if not client:
        return None

    key = _make_listing_key(namespace, params)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_listing(namespace: str, params: dict, data: Any) -> None:
    """Cache a listing response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_listing_key(namespace, params)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_listing(namespace: str) -> None:
    """Invalidate every cached listing in a namespace."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"catalog:{namespace}:*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", namespace=namespace, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", namespace=namespace, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
