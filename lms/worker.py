"""Background worker process.

RUN:  python -m lms.worker

Same image as the API, different command:
  api:    uvicorn lms.main:app --host 0.0.0.0 --port 8000
  worker: python -m lms.worker

The loop polls every registered queue round-robin, dequeues one task at
a time and dispatches it to the queue's handler.  A failed task is
logged and dropped; the notification row it refers to is already
stored, so the learner still sees it in-app.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from lms.core.clock import utc_now
from lms.core.config import SETTINGS
from lms.core.logging import setup_logging
from lms.core.metrics import QUEUE_DEPTH
from lms.services.task_queue import NOTIFICATIONS_QUEUE, TaskQueue, task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("lms.worker")


# ---------------------------------------------------------------------------
# Handler registry
# ---------------------------------------------------------------------------

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


# ---------------------------------------------------------------------------
# Task handlers
# ---------------------------------------------------------------------------


@register_handler(NOTIFICATIONS_QUEUE)
async def handle_notification(payload: dict) -> None:
    """Hand a stored notification to the outbound channel.

    Email/push delivery lives outside this service; the handler validates
    the payload and records the hand-off.
    """
    missing = [k for k in ("notification_id", "user_id", "title") if not payload.get(k)]
    if missing:
        raise ValueError(f"notification task missing fields: {missing}")
    logger.info(
        "Delivering notification=%s to user=%s: %s",
        payload["notification_id"],
        payload["user_id"],
        payload["title"],
    )


# ---------------------------------------------------------------------------
# Main worker loop
# ---------------------------------------------------------------------------


async def drain_once(queue: TaskQueue, queue_name: str, timeout: int = 1) -> bool:
    """Process at most one task from ``queue_name``.  Returns True if one ran."""
    task = await queue.dequeue(queue_name, timeout=timeout)
    QUEUE_DEPTH.labels(queue_name=queue_name).set(await queue.queue_length(queue_name))
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info(
            "Task %s on [%s] completed lag=%ds",
            task.id,
            queue_name,
            max(0, utc_now() - task.enqueued_at),
        )
    except Exception:
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    return True


async def run_worker() -> None:
    """Poll all registered queues and dispatch tasks to handlers."""
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        ran = False
        for queue_name in queues:
            ran = await drain_once(task_queue, queue_name) or ran
        if not ran:
            # In-memory queues return immediately; avoid a busy loop.
            await asyncio.sleep(0.5)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
