from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms.models.notification import Notification


class NotificationRepo(Protocol):
    async def add(self, notification: Notification) -> None: ...
    async def list_by_user(
        self, user_id: str, *, unread_only: bool = False
    ) -> list[Notification]: ...
    async def mark_read(
        self, user_id: str, notification_ids: Iterable[UUID] | None = None
    ) -> int: ...


class InMemoryNotificationRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Notification] = {}

    async def add(self, notification: Notification) -> None:
        self._by_id[notification.id] = notification

    async def list_by_user(
        self, user_id: str, *, unread_only: bool = False
    ) -> list[Notification]:
        rows = [
            n
            for n in self._by_id.values()
            if n.user_id == user_id and not (unread_only and n.is_read)
        ]
        return sorted(rows, key=lambda n: n.created_at, reverse=True)

    async def mark_read(
        self, user_id: str, notification_ids: Iterable[UUID] | None = None
    ) -> int:
        """Mark the user's notifications read; all of them when ids is None."""
        wanted = set(notification_ids) if notification_ids is not None else None
        changed = 0
        for n in list(self._by_id.values()):
            if n.user_id != user_id or n.is_read:
                continue
            if wanted is not None and n.id not in wanted:
                continue
            self._by_id[n.id] = replace(n, is_read=True)
            changed += 1
        return changed

    def snapshot(self) -> dict[UUID, Notification]:
        return dict(self._by_id)

    def restore(self, state: dict[UUID, Notification]) -> None:
        self._by_id = dict(state)

    def clear(self) -> None:
        self._by_id.clear()
