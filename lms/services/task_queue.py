"""Delivery queue for learner notifications.

Grading and reset decisions notify learners.  The notification row is
written inside the same transaction as the grade; handing it to an
outbound channel happens out of band:

  API process:   notify() → row committed → LPUSH delivery task
  Worker:        BRPOP → handler → next task

Tasks leave in the order they were pushed.  Delivery is at-most-once: a
worker crash mid-task loses that task, never the stored notification.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable

from lms.core.clock import utc_now
from lms.db.redis import redis_pool

NOTIFICATIONS_QUEUE = "notifications"


@dataclass(frozen=True, slots=True)
class Task:
    """One queued delivery.

    enqueued_at is epoch seconds; the worker uses it to report lag.
    """

    id: str
    queue: str
    payload: dict
    enqueued_at: int

    @classmethod
    def new(cls, queue: str, payload: dict) -> Task:
        return cls(
            id=str(uuid.uuid4()), queue=queue, payload=payload, enqueued_at=utc_now()
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str | bytes) -> Task:
        return cls(**json.loads(raw))


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, queue: str, payload: dict) -> Task: ...
    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None: ...
    async def queue_length(self, queue: str) -> int: ...


class InMemoryTaskQueue:
    """Process-local queue used when REDIS_URL is unset."""

    def __init__(self) -> None:
        self._pending: dict[str, list[Task]] = {}

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task.new(queue, payload)
        self._pending.setdefault(queue, []).append(task)
        return task

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        pending = self._pending.get(queue)
        return pending.pop(0) if pending else None

    async def queue_length(self, queue: str) -> int:
        return len(self._pending.get(queue, ()))

    def clear(self) -> None:
        self._pending.clear()


class RedisTaskQueue:
    """One Redis list per queue: LPUSH to add, BRPOP to take."""

    _PREFIX = "tasks:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    def _key(self, queue: str) -> str:
        return f"{self._PREFIX}{queue}"

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task.new(queue, payload)
        await self._redis.lpush(self._key(queue), task.to_json())
        return task

    async def dequeue(self, queue: str, timeout: int = 5) -> Task | None:
        # None when nothing arrived within `timeout` seconds.
        popped = await self._redis.brpop(self._key(queue), timeout=timeout)
        if popped is None:
            return None
        _, raw = popped
        return Task.from_json(raw)

    async def queue_length(self, queue: str) -> int:
        return await self._redis.llen(self._key(queue))


if redis_pool is not None:
    task_queue: TaskQueue = RedisTaskQueue(redis_pool)
else:
    task_queue = InMemoryTaskQueue()
