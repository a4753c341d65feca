from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from lms.core.errors import ReferentialError, ValidationFailed
from lms.db.unit_of_work import UnitOfWork
from lms.models.course import Course, CourseModule, LearningPath
from lms.services.lookups import load_course
from lms.services.results import OperationResult, operation

logger = logging.getLogger(__name__)


@operation("add_course", failure_message="Failed to add course.")
async def add_course(
    uow: UnitOfWork,
    title: str,
    *,
    org_id: UUID | None = None,
    has_certificate: bool = False,
) -> OperationResult[Course]:
    title = title.strip()
    if len(title) < 3:
        raise ValidationFailed(
            "Invalid data provided.", ["Title must be at least 3 characters long."]
        )
    course = Course.new(title=title, org_id=org_id, has_certificate=has_certificate)
    async with uow:
        await uow.courses.add(course)
    logger.info("Created course=%s org=%s", course.id, org_id)
    return OperationResult.ok("Course added successfully.", course)


@operation("list_courses", failure_message="Failed to load courses.")
async def list_courses(
    uow: UnitOfWork, *, org_id: UUID | None = None
) -> OperationResult[list[Course]]:
    async with uow:
        courses = await uow.courses.list(org_id)
    return OperationResult.ok("Courses loaded.", courses)


@operation("add_learning_path", failure_message="Failed to add learning path.")
async def add_learning_path(
    uow: UnitOfWork,
    title: str,
    course_ids: Sequence[UUID],
    *,
    org_id: UUID | None = None,
    has_certificate: bool = False,
) -> OperationResult[LearningPath]:
    title = title.strip()
    errors = []
    if len(title) < 3:
        errors.append("Title must be at least 3 characters long.")
    if not course_ids:
        errors.append("A learning path needs at least one course.")
    if len(set(course_ids)) != len(course_ids):
        errors.append("A course can appear only once in a learning path.")
    if errors:
        raise ValidationFailed("Invalid data provided.", errors)

    path = LearningPath.new(
        title=title,
        course_ids=tuple(course_ids),
        org_id=org_id,
        has_certificate=has_certificate,
    )
    async with uow:
        for course_id in course_ids:
            course = await uow.courses.get(course_id)
            if course is None or (org_id is not None and course.org_id != org_id):
                raise ReferentialError(f"Course {course_id} not found.")
        await uow.courses.add_learning_path(path)
    logger.info("Created learning path=%s courses=%d", path.id, len(course_ids))
    return OperationResult.ok("Learning path added successfully.", path)


@operation("list_learning_paths", failure_message="Failed to load learning paths.")
async def list_learning_paths(
    uow: UnitOfWork, *, org_id: UUID | None = None
) -> OperationResult[list[LearningPath]]:
    async with uow:
        paths = await uow.courses.list_learning_paths(org_id)
    return OperationResult.ok("Learning paths loaded.", paths)


@operation("add_module", failure_message="Failed to add module.")
async def add_module(
    uow: UnitOfWork,
    course_id: UUID,
    title: str,
    *,
    org_id: UUID | None = None,
) -> OperationResult[CourseModule]:
    """Append a module to the end of the course."""
    title = title.strip()
    if not title:
        raise ValidationFailed("Invalid data provided.", ["Module title is required."])
    async with uow:
        await load_course(uow, course_id, org_id)
        existing = await uow.courses.list_modules(course_id)
        position = existing[-1].position + 1 if existing else 0
        module = CourseModule.new(course_id=course_id, position=position, title=title)
        await uow.courses.add_module(module)
    logger.info("Created module=%s course=%s position=%d", module.id, course_id, position)
    return OperationResult.ok("Module added successfully.", module)


@operation("list_modules", failure_message="Failed to load modules.")
async def list_modules(
    uow: UnitOfWork, course_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[list[CourseModule]]:
    async with uow:
        await load_course(uow, course_id, org_id)
        modules = await uow.courses.list_modules(course_id)
    return OperationResult.ok("Modules loaded.", modules)
