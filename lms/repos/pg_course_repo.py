"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import (
    CourseModuleRow,
    CourseRow,
    LearningPathCourseRow,
    LearningPathRow,
)
from lms.models.course import Course, CourseModule, LearningPath


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: UUID) -> Course | None:
        row = await self._session.get(CourseRow, course_id)
        if row is None:
            return None
        return _row_to_course(row)

    async def add(self, course: Course) -> None:
        self._session.add(
            CourseRow(
                id=course.id,
                org_id=course.org_id,
                title=course.title,
                has_certificate=course.has_certificate,
            )
        )
        await self._session.flush()

    async def list(self, org_id: UUID | None = None) -> list[Course]:
        stmt = select(CourseRow).order_by(CourseRow.title)
        if org_id is not None:
            stmt = stmt.where(CourseRow.org_id == org_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def get_learning_path(self, path_id: UUID) -> LearningPath | None:
        row = await self._session.get(LearningPathRow, path_id)
        if row is None:
            return None
        return await self._assemble(row)

    async def add_learning_path(self, path: LearningPath) -> None:
        self._session.add(
            LearningPathRow(
                id=path.id,
                org_id=path.org_id,
                title=path.title,
                has_certificate=path.has_certificate,
            )
        )
        await self._session.flush()
        for position, course_id in enumerate(path.course_ids):
            self._session.add(
                LearningPathCourseRow(
                    learning_path_id=path.id, course_id=course_id, position=position
                )
            )
        await self._session.flush()

    async def list_learning_paths(
        self, org_id: UUID | None = None
    ) -> list[LearningPath]:
        stmt = select(LearningPathRow).order_by(LearningPathRow.title)
        if org_id is not None:
            stmt = stmt.where(LearningPathRow.org_id == org_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [await self._assemble(r) for r in rows]

    async def get_module(self, module_id: UUID) -> CourseModule | None:
        row = await self._session.get(CourseModuleRow, module_id)
        if row is None:
            return None
        return _row_to_module(row)

    async def add_module(self, module: CourseModule) -> None:
        self._session.add(
            CourseModuleRow(
                id=module.id,
                course_id=module.course_id,
                position=module.position,
                title=module.title,
            )
        )
        await self._session.flush()

    async def list_modules(self, course_id: UUID) -> list[CourseModule]:
        stmt = (
            select(CourseModuleRow)
            .where(CourseModuleRow.course_id == course_id)
            .order_by(CourseModuleRow.position)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_module(r) for r in rows]

    async def _assemble(self, row: LearningPathRow) -> LearningPath:
        stmt = (
            select(LearningPathCourseRow.course_id)
            .where(LearningPathCourseRow.learning_path_id == row.id)
            .order_by(LearningPathCourseRow.position)
        )
        course_ids = (await self._session.execute(stmt)).scalars().all()
        return LearningPath(
            id=row.id,
            title=row.title,
            course_ids=tuple(course_ids),
            org_id=row.org_id,
            has_certificate=row.has_certificate,
        )


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        org_id=row.org_id,
        has_certificate=row.has_certificate,
    )


def _row_to_module(row: CourseModuleRow) -> CourseModule:
    return CourseModule(
        id=row.id, course_id=row.course_id, position=row.position, title=row.title
    )
