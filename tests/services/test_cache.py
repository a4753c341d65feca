from __future__ import annotations

import asyncio
from uuid import UUID

from lms.services.cache import (
    InMemoryCacheService,
    cache_service,
    invalidate_course_status,
    invalidate_status,
    status_key,
)

COURSE = UUID("00000000-0000-0000-0000-000000000c01")


def test_status_key_format() -> None:
    assert status_key("learner", COURSE) == f"status:learner:{COURSE}"


def test_in_memory_cache_pattern_delete() -> None:
    cache = InMemoryCacheService()

    async def scenario() -> None:
        await cache.set("status:a:1", "x", 60)
        await cache.set("status:b:1", "y", 60)
        await cache.set("status:a:2", "z", 60)
        await cache.delete_pattern("status:*:1")
        assert await cache.get("status:a:1") is None
        assert await cache.get("status:b:1") is None
        assert await cache.get("status:a:2") == "z"

    asyncio.run(scenario())


def test_invalidate_status_drops_only_that_entry() -> None:
    asyncio.run(cache_service.set(status_key("a", COURSE), "{}", 60))
    asyncio.run(cache_service.set(status_key("b", COURSE), "{}", 60))
    asyncio.run(invalidate_status("a", COURSE))
    assert asyncio.run(cache_service.get(status_key("a", COURSE))) is None
    assert asyncio.run(cache_service.get(status_key("b", COURSE))) == "{}"


def test_invalidate_course_status_drops_every_learner() -> None:
    other = UUID("00000000-0000-0000-0000-000000000c02")
    asyncio.run(cache_service.set(status_key("a", COURSE), "{}", 60))
    asyncio.run(cache_service.set(status_key("b", COURSE), "{}", 60))
    asyncio.run(cache_service.set(status_key("a", other), "{}", 60))
    asyncio.run(invalidate_course_status(COURSE))
    assert asyncio.run(cache_service.get(status_key("a", COURSE))) is None
    assert asyncio.run(cache_service.get(status_key("b", COURSE))) is None
    assert asyncio.run(cache_service.get(status_key("a", other))) == "{}"
