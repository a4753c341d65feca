from __future__ import annotations

import asyncio

from lms.db.unit_of_work import InMemoryUnitOfWork, memory_store
from lms.services import notification_service
from tests.conftest import new_uow


async def _seed(user_id: str, *titles: str) -> list:
    uow = InMemoryUnitOfWork(memory_store)
    created = []
    async with uow:
        for title in titles:
            created.append(await notification_service.notify(uow, user_id, title, "body"))
    return created


def test_list_and_mark_selected_read() -> None:
    first, second = asyncio.run(_seed("reader", "Quiz Graded", "Quiz Reset Approved"))
    asyncio.run(_seed("other", "Quiz Graded"))

    listed = asyncio.run(notification_service.list_notifications(new_uow(), "reader")).data
    assert {n.id for n in listed} == {first.id, second.id}

    changed = asyncio.run(
        notification_service.mark_notifications_read(new_uow(), "reader", [first.id])
    )
    assert changed.data == 1

    unread = asyncio.run(
        notification_service.list_notifications(new_uow(), "reader", unread_only=True)
    ).data
    assert [n.id for n in unread] == [second.id]


def test_mark_all_read_touches_only_own_notifications() -> None:
    asyncio.run(_seed("reader", "a", "b"))
    asyncio.run(_seed("other", "c"))

    changed = asyncio.run(notification_service.mark_notifications_read(new_uow(), "reader"))
    assert changed.data == 2

    others = asyncio.run(
        notification_service.list_notifications(new_uow(), "other", unread_only=True)
    ).data
    assert len(others) == 1
