"""Notification worker tests (in-memory queue)."""

from __future__ import annotations

import asyncio
import logging

import pytest

from lms import worker
from lms.services.task_queue import NOTIFICATIONS_QUEUE, Task, task_queue


def test_drain_once_on_empty_queue() -> None:
    assert asyncio.run(worker.drain_once(task_queue, NOTIFICATIONS_QUEUE, timeout=0)) is False


def test_drain_once_delivers_notification(caplog: pytest.LogCaptureFixture) -> None:
    asyncio.run(
        task_queue.enqueue(
            NOTIFICATIONS_QUEUE,
            {"notification_id": "n-1", "user_id": "learner", "title": "Quiz Graded"},
        )
    )
    with caplog.at_level(logging.INFO, logger="lms.worker"):
        ran = asyncio.run(worker.drain_once(task_queue, NOTIFICATIONS_QUEUE, timeout=0))
    assert ran is True
    assert asyncio.run(task_queue.queue_length(NOTIFICATIONS_QUEUE)) == 0
    assert "Delivering notification=n-1 to user=learner" in caplog.text


def test_bad_task_is_logged_and_dropped(caplog: pytest.LogCaptureFixture) -> None:
    asyncio.run(task_queue.enqueue(NOTIFICATIONS_QUEUE, {"user_id": "learner"}))
    ran = asyncio.run(worker.drain_once(task_queue, NOTIFICATIONS_QUEUE, timeout=0))
    assert ran is True
    assert "failed" in caplog.text
    assert asyncio.run(task_queue.queue_length(NOTIFICATIONS_QUEUE)) == 0


def test_notifications_handler_is_registered() -> None:
    assert worker.HANDLERS[NOTIFICATIONS_QUEUE] is worker.handle_notification


def test_completed_task_reports_queue_lag(caplog: pytest.LogCaptureFixture) -> None:
    task = asyncio.run(
        task_queue.enqueue(
            NOTIFICATIONS_QUEUE,
            {"notification_id": "n-2", "user_id": "learner", "title": "Reset Approved"},
        )
    )
    assert task.enqueued_at > 0
    with caplog.at_level(logging.INFO, logger="lms.worker"):
        asyncio.run(worker.drain_once(task_queue, NOTIFICATIONS_QUEUE, timeout=0))
    assert f"Task {task.id} on [notifications] completed lag=" in caplog.text


def test_task_json_survives_the_redis_wire_format() -> None:
    task = Task.new(NOTIFICATIONS_QUEUE, {"user_id": "learner"})
    assert Task.from_json(task.to_json()) == task
