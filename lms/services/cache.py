"""Read-through cache for learner course status.

Flow:  Client → Cache → miss → DB → populate cache → return
       Client → Cache → hit  → return (skip DB entirely)

Two complementary invalidation strategies:

  1. TTL: every entry expires after STATUS_CACHE_TTL seconds, so a missed
     invalidation only leaves stale data for a bounded time.
  2. Explicit: anything that changes a learner's standing in a course
     (submission, grading, reset approval, manual completion) deletes the
     ``status:{user_id}:{course_id}`` entry right after it commits. Editing
     or deleting a course's quiz drops every learner's entry for that course.
     A TTL of 0 disables caching.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import Protocol, runtime_checkable
from uuid import UUID

from lms.core.metrics import CACHE_OPERATIONS
from lms.db.redis import redis_pool

logger = logging.getLogger(__name__)


def status_key(user_id: str, course_id: UUID) -> str:
    return f"status:{user_id}:{course_id}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    async def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...

    async def delete_pattern(self, pattern: str) -> None:
        """Delete all keys matching a glob pattern (e.g., "status:*:{course_id}")."""
        ...


class InMemoryCacheService:
    """In-memory cache for tests and dev runs; no TTL enforcement.

    The autouse fixture in conftest.py clears the store between tests.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        for k in fnmatch.filter(list(self._store), pattern):
            del self._store[k]

    def clear(self) -> None:
        self._store.clear()


class RedisCacheService:
    """Redis-backed cache shared across all API instances."""

    # Keeps cache keys apart from the task queue lists.
    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        return await self._redis.get(f"{self._PREFIX}{key}")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")

    async def delete_pattern(self, pattern: str) -> None:
        # SCAN is cursor-based and never blocks the server the way KEYS does.
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor, match=f"{self._PREFIX}{pattern}", count=100
            )
            if keys:
                await self._redis.delete(*keys)
            if cursor == 0:
                break


async def invalidate_status(user_id: str, course_id: UUID) -> None:
    """Drop a learner's cached course status after a state change."""
    try:
        await cache_service.delete(status_key(user_id, course_id))
    except Exception:
        # The write is committed; the TTL bounds how long the entry stays stale.
        logger.warning(
            "Cache invalidation failed for %s", status_key(user_id, course_id),
            exc_info=True,
        )
        return
    CACHE_OPERATIONS.labels(operation="invalidate").inc()


async def invalidate_course_status(course_id: UUID) -> None:
    """Drop every learner's cached status for a course (quiz edited or removed)."""
    try:
        await cache_service.delete_pattern(status_key("*", course_id))
    except Exception:
        logger.warning(
            "Cache invalidation failed for course %s", course_id, exc_info=True
        )
        return
    CACHE_OPERATIONS.labels(operation="invalidate").inc()


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
