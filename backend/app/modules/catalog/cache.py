"""
Category Cache - storefront category list in Redis.
"""

import json
from typing import Any

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import RedisError

from app.core.config import settings


class CategoryCache:
    """
    Redis cache for the public category list.

    Redis failures are treated as cache misses so the storefront keeps
    serving from the database.

    Usage:
        cache = CategoryCache()
        items = await cache.get_public()
        if items is None:
            ...
            await cache.set_public(items)
    """

    PUBLIC_KEY = "catalog:public-categories"

    def __init__(self, ttl: int | None = None) -> None:
        """Initialize cache without connecting."""
        self._redis: redis.Redis | None = None
        self.ttl = ttl or settings.category_cache_ttl
        self.enabled = settings.category_cache_enabled

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.from_url(
            str(settings.redis_url),
            encoding="utf-8",
            decode_responses=True,
        )

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get_public(self) -> list[dict[str, Any]] | None:
        """Get cached public categories, or None on miss."""
        if not self.enabled:
            return None
        if not self._redis:
            await self.connect()

        try:
            cached = await self._redis.get(self.PUBLIC_KEY)
        except RedisError as e:
            logger.warning(f"Category cache unavailable: {e}")
            return None

        if not cached:
            return None

        try:
            return json.loads(cached)
        except json.JSONDecodeError:
            logger.warning("Invalid cached category list, ignoring")
            return None

    async def set_public(self, items: list[dict[str, Any]]) -> None:
        """Store public categories with TTL."""
        if not self.enabled:
            return
        if not self._redis:
            await self.connect()

        try:
            await self._redis.setex(self.PUBLIC_KEY, self.ttl, json.dumps(items))
        except RedisError as e:
            logger.warning(f"Failed to cache categories: {e}")

    async def invalidate(self) -> None:
        """Drop cached public categories after a catalog write."""
        if not self.enabled:
            return
        if not self._redis:
            await self.connect()

        try:
            await self._redis.delete(self.PUBLIC_KEY)
        except RedisError as e:
            logger.warning(f"Failed to invalidate category cache: {e}")


# Singleton instance
_category_cache: CategoryCache | None = None


async def get_category_cache() -> CategoryCache:
    """Get or create category cache singleton."""
    global _category_cache
    if _category_cache is None:
        _category_cache = CategoryCache()
        await _category_cache.connect()
    return _category_cache


async def close_category_cache() -> None:
    """Disconnect the singleton, if it was created."""
    global _category_cache
    if _category_cache is not None:
        await _category_cache.disconnect()
        _category_cache = None
