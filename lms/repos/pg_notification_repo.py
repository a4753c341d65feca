"""PostgreSQL implementation of NotificationRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import NotificationRow
from lms.models.notification import Notification


class PgNotificationRepo:
    """Satisfies the NotificationRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, notification: Notification) -> None:
        self._session.add(
            NotificationRow(
                id=notification.id,
                user_id=notification.user_id,
                title=notification.title,
                description=notification.description,
                is_read=notification.is_read,
                created_at=notification.created_at,
            )
        )
        await self._session.flush()

    async def list_by_user(
        self, user_id: str, *, unread_only: bool = False
    ) -> list[Notification]:
        stmt = (
            select(NotificationRow)
            .where(NotificationRow.user_id == user_id)
            .order_by(NotificationRow.created_at.desc())
        )
        if unread_only:
            stmt = stmt.where(NotificationRow.is_read.is_(False))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_notification(r) for r in rows]

    async def mark_read(
        self, user_id: str, notification_ids: Iterable[UUID] | None = None
    ) -> int:
        stmt = (
            update(NotificationRow)
            .where(
                NotificationRow.user_id == user_id,
                NotificationRow.is_read.is_(False),
            )
            .values(is_read=True)
        )
        if notification_ids is not None:
            stmt = stmt.where(NotificationRow.id.in_(list(notification_ids)))
        result = await self._session.execute(stmt)
        return result.rowcount


def _row_to_notification(row: NotificationRow) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        created_at=row.created_at,
        is_read=row.is_read,
    )
