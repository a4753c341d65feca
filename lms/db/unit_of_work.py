"""Unit of work: one transaction around every multi-step operation.

Services run their reads and writes against ``uow.<repo>`` inside
``async with uow:``.  Leaving the block normally commits; an exception
rolls back every write made in the block and propagates.

Side effects that must only happen once the data is durable (enqueuing
notification delivery, for example) are registered with ``after_commit``.

Two implementations share the interface:
- SqlAlchemyUnitOfWork: one AsyncSession per block, Pg* repos
- InMemoryUnitOfWork: snapshots the in-memory repos on entry and
  restores them on failure, so rollback semantics hold in tests and
  in database-less dev runs
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms.db.engine import async_session_factory
from lms.repos.completion_repo import CompletionRepo, InMemoryCompletionRepo
from lms.repos.course_repo import CourseRepo, InMemoryCourseRepo
from lms.repos.notification_repo import InMemoryNotificationRepo, NotificationRepo
from lms.repos.pg_completion_repo import PgCompletionRepo
from lms.repos.pg_course_repo import PgCourseRepo
from lms.repos.pg_notification_repo import PgNotificationRepo
from lms.repos.pg_quiz_repo import PgQuizRepo
from lms.repos.pg_reset_request_repo import PgResetRequestRepo
from lms.repos.pg_submission_repo import PgSubmissionRepo
from lms.repos.quiz_repo import InMemoryQuizRepo, QuizRepo
from lms.repos.reset_request_repo import InMemoryResetRequestRepo, ResetRequestRepo
from lms.repos.submission_repo import InMemorySubmissionRepo, SubmissionRepo

logger = logging.getLogger(__name__)

AfterCommitHook = Callable[[], Awaitable[None]]


class UnitOfWork:
    courses: CourseRepo
    quizzes: QuizRepo
    submissions: SubmissionRepo
    completions: CompletionRepo
    reset_requests: ResetRequestRepo
    notifications: NotificationRepo

    def __init__(self) -> None:
        self._hooks: list[AfterCommitHook] = []

    def after_commit(self, hook: AfterCommitHook) -> None:
        self._hooks.append(hook)

    async def _run_hooks(self) -> None:
        hooks, self._hooks = self._hooks, []
        for hook in hooks:
            # Data is already committed; a failed side effect must not undo it.
            try:
                await hook()
            except Exception:
                logger.exception("after-commit hook failed")

    async def __aenter__(self) -> UnitOfWork:
        raise NotImplementedError

    async def __aexit__(self, exc_type, exc, tb) -> None:
        raise NotImplementedError


class InMemoryStore:
    """Process-wide in-memory repositories shared by every InMemoryUnitOfWork."""

    def __init__(self) -> None:
        self.courses = InMemoryCourseRepo()
        self.quizzes = InMemoryQuizRepo()
        self.submissions = InMemorySubmissionRepo()
        self.completions = InMemoryCompletionRepo()
        self.reset_requests = InMemoryResetRequestRepo()
        self.notifications = InMemoryNotificationRepo()

    def _repos(self) -> tuple:
        return (
            self.courses,
            self.quizzes,
            self.submissions,
            self.completions,
            self.reset_requests,
            self.notifications,
        )

    def snapshot(self) -> list:
        return [repo.snapshot() for repo in self._repos()]

    def restore(self, state: list) -> None:
        for repo, saved in zip(self._repos(), state):
            repo.restore(saved)

    def clear(self) -> None:
        for repo in self._repos():
            repo.clear()


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryStore) -> None:
        super().__init__()
        self._store = store
        self._saved: list | None = None

    async def __aenter__(self) -> InMemoryUnitOfWork:
        self._saved = self._store.snapshot()
        self.courses = self._store.courses
        self.quizzes = self._store.quizzes
        self.submissions = self._store.submissions
        self.completions = self._store.completions
        self.reset_requests = self._store.reset_requests
        self.notifications = self._store.notifications
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            if self._saved is not None:
                self._store.restore(self._saved)
            self._hooks.clear()
            self._saved = None
            return
        self._saved = None
        await self._run_hooks()


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.courses = PgCourseRepo(self._session)
        self.quizzes = PgQuizRepo(self._session)
        self.submissions = PgSubmissionRepo(self._session)
        self.completions = PgCompletionRepo(self._session)
        self.reset_requests = PgResetRequestRepo(self._session)
        self.notifications = PgNotificationRepo(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        session, self._session = self._session, None
        if session is None:
            raise RuntimeError("unit of work exited without being entered")
        try:
            if exc_type is not None:
                await session.rollback()
                self._hooks.clear()
                return
            await session.commit()
        finally:
            await session.close()
        await self._run_hooks()


memory_store = InMemoryStore()


def get_uow() -> UnitOfWork:
    """FastAPI dependency: a fresh unit of work bound to the configured backend."""
    if async_session_factory is not None:
        return SqlAlchemyUnitOfWork(async_session_factory)
    return InMemoryUnitOfWork(memory_store)
