"""
Course listing cache.

The cache is a best-effort side channel: every failure is logged and turned
into a miss (reads) or False (writes), never raised to the request path.
Listing results are stored as JSON under `courses:{query}` with a short TTL.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from app.courses.config import COURSE_CACHE_PREFIX, COURSE_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class CourseCache:
    """Key-value cache contract used by the course services"""

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl: int = COURSE_CACHE_TTL_SECONDS) -> bool:
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        raise NotImplementedError

    async def delete_pattern(self, pattern: str) -> bool:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class NullCache(CourseCache):
    """Used when caching is disabled: every read misses, every write is dropped"""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(self, key: str, value: Any, ttl: int = COURSE_CACHE_TTL_SECONDS) -> bool:
        return False

    async def delete(self, key: str) -> bool:
        return False

    async def delete_pattern(self, pattern: str) -> bool:
        return False


class RedisCache(CourseCache):
    def __init__(self, client: "redis.Redis"):
        """
        Args:
            client: redis.asyncio client created with decode_responses=True
        """
        self._r = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[Any]:
        try:
            data = await self._r.get(key)
        except Exception as e:
            logger.warning("Cache get error for %s: %s", key, e)
            return None
        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any, ttl: int = COURSE_CACHE_TTL_SECONDS) -> bool:
        try:
            await self._r.setex(key, ttl, json.dumps(value, separators=(",", ":")))
            return True
        except Exception as e:
            logger.warning("Cache set error for %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self._r.delete(key)
            return True
        except Exception as e:
            logger.warning("Cache delete error for %s: %s", key, e)
            return False

    async def delete_pattern(self, pattern: str) -> bool:
        try:
            keys = [k async for k in self._r.scan_iter(match=pattern)]
            if keys:
                await self._r.delete(*keys)
            return True
        except Exception as e:
            logger.warning("Cache pattern delete error for %s: %s", pattern, e)
            return False

    async def close(self) -> None:
        try:
            await self._r.aclose()
        except Exception as e:
            logger.warning("Cache close error: %s", e)


def build_cache(url: str) -> CourseCache:
    """RedisCache for a configured URL, NullCache otherwise"""
    if not url:
        logger.warning("Redis URL not provided, caching disabled")
        return NullCache()
    return RedisCache.from_url(url)


def listing_key(query: dict) -> str:
    """Cache key embedding the full serialized listing query"""
    return f"{COURSE_CACHE_PREFIX}:{json.dumps(query, sort_keys=True, default=str)}"


async def invalidate_course_listings(cache: CourseCache) -> bool:
    # Keys embed arbitrary query combinations, so clear the whole namespace
    return await cache.delete_pattern(f"{COURSE_CACHE_PREFIX}:*")
