"""In-app notifications.

``notify`` is called by other services inside their own unit of work:
the row commits (or rolls back) with the grade or reset decision that
caused it, and the delivery task is only enqueued once the commit has
happened.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID

from lms.core.clock import utc_now
from lms.db.unit_of_work import UnitOfWork
from lms.models.notification import Notification
from lms.services.results import OperationResult, operation
from lms.services.task_queue import NOTIFICATIONS_QUEUE, task_queue

logger = logging.getLogger(__name__)


async def notify(
    uow: UnitOfWork, user_id: str, title: str, description: str
) -> Notification:
    notification = Notification.new(
        user_id=user_id, title=title, description=description, created_at=utc_now()
    )
    await uow.notifications.add(notification)

    async def _enqueue() -> None:
        await task_queue.enqueue(
            NOTIFICATIONS_QUEUE,
            {
                "notification_id": str(notification.id),
                "user_id": user_id,
                "title": title,
                "description": description,
            },
        )

    uow.after_commit(_enqueue)
    return notification


@operation("list_notifications", failure_message="Failed to load notifications.")
async def list_notifications(
    uow: UnitOfWork, user_id: str, *, unread_only: bool = False
) -> OperationResult[list[Notification]]:
    async with uow:
        rows = await uow.notifications.list_by_user(user_id, unread_only=unread_only)
    return OperationResult.ok("Notifications loaded.", rows)


@operation("mark_notifications_read", failure_message="Failed to update notifications.")
async def mark_notifications_read(
    uow: UnitOfWork, user_id: str, notification_ids: Iterable[UUID] | None = None
) -> OperationResult[int]:
    async with uow:
        changed = await uow.notifications.mark_read(user_id, notification_ids)
    logger.info("Marked %d notifications read for user=%s", changed, user_id)
    return OperationResult.ok("Notifications updated.", changed)
