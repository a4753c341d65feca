"""PostgreSQL implementation of CompletionRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import UserCompletedCourseRow, UserCompletedModuleRow
from lms.models.completion import ModuleCompletion, UserCompletedCourse


class PgCompletionRepo:
    """Satisfies the CompletionRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str, course_id: UUID) -> UserCompletedCourse | None:
        row = await self._session.get(UserCompletedCourseRow, (user_id, course_id))
        if row is None:
            return None
        return _row_to_completion(row)

    async def upsert(self, record: UserCompletedCourse) -> None:
        stmt = insert(UserCompletedCourseRow).values(
            user_id=record.user_id,
            course_id=record.course_id,
            score=record.score,
            completion_date=record.completion_date,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "course_id"],
            set_={
                "score": stmt.excluded.score,
                "completion_date": stmt.excluded.completion_date,
            },
        )
        await self._session.execute(stmt)

    async def delete(self, user_id: str, course_id: UUID) -> bool:
        stmt = delete(UserCompletedCourseRow).where(
            UserCompletedCourseRow.user_id == user_id,
            UserCompletedCourseRow.course_id == course_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def list_by_user(self, user_id: str) -> list[UserCompletedCourse]:
        stmt = (
            select(UserCompletedCourseRow)
            .where(UserCompletedCourseRow.user_id == user_id)
            .order_by(UserCompletedCourseRow.completion_date)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_completion(r) for r in rows]

    async def list_by_courses(
        self, course_ids: Iterable[UUID]
    ) -> list[UserCompletedCourse]:
        ids = list(course_ids)
        if not ids:
            return []
        stmt = select(UserCompletedCourseRow).where(
            UserCompletedCourseRow.course_id.in_(ids)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_completion(r) for r in rows]

    async def mark_module(self, record: ModuleCompletion) -> None:
        stmt = (
            insert(UserCompletedModuleRow)
            .values(
                user_id=record.user_id,
                module_id=record.module_id,
                completed_at=record.completed_at,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "module_id"])
        )
        await self._session.execute(stmt)

    async def unmark_module(self, user_id: str, module_id: UUID) -> bool:
        stmt = delete(UserCompletedModuleRow).where(
            UserCompletedModuleRow.user_id == user_id,
            UserCompletedModuleRow.module_id == module_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def list_modules(
        self, user_id: str, module_ids: Iterable[UUID]
    ) -> list[ModuleCompletion]:
        ids = list(module_ids)
        if not ids:
            return []
        stmt = select(UserCompletedModuleRow).where(
            UserCompletedModuleRow.user_id == user_id,
            UserCompletedModuleRow.module_id.in_(ids),
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            ModuleCompletion(
                user_id=r.user_id, module_id=r.module_id, completed_at=r.completed_at
            )
            for r in rows
        ]

    async def clear_modules(self, user_id: str, module_ids: Iterable[UUID]) -> int:
        ids = list(module_ids)
        if not ids:
            return 0
        stmt = delete(UserCompletedModuleRow).where(
            UserCompletedModuleRow.user_id == user_id,
            UserCompletedModuleRow.module_id.in_(ids),
        )
        result = await self._session.execute(stmt)
        return result.rowcount


def _row_to_completion(row: UserCompletedCourseRow) -> UserCompletedCourse:
    return UserCompletedCourse(
        user_id=row.user_id,
        course_id=row.course_id,
        score=row.score,
        completion_date=row.completion_date,
    )
