"""Tenant-scoped loaders shared by the service modules.

``org_id`` is the caller's tenant; None means unrestricted (platform
operators and internal callers).  A row belonging to another tenant is
reported exactly like a missing row so tenants cannot discover each other's ids.
"""

from __future__ import annotations

from uuid import UUID

from lms.core.errors import NotFound, ReferentialError
from lms.db.unit_of_work import UnitOfWork
from lms.models.course import Course, CourseModule
from lms.models.quiz import Quiz
from lms.models.submission import QuizSubmission


def _visible(course: Course, org_id: UUID | None) -> bool:
    return org_id is None or course.org_id == org_id


async def load_course(
    uow: UnitOfWork, course_id: UUID, org_id: UUID | None = None
) -> Course:
    course = await uow.courses.get(course_id)
    if course is None or not _visible(course, org_id):
        raise NotFound("Course not found.")
    return course


async def load_quiz(
    uow: UnitOfWork, quiz_id: UUID, org_id: UUID | None = None
) -> tuple[Quiz, Course]:
    quiz = await uow.quizzes.get(quiz_id)
    if quiz is None:
        raise NotFound("Quiz not found.")
    course = await uow.courses.get(quiz.course_id)
    if course is None or not _visible(course, org_id):
        raise NotFound("Quiz not found.")
    return quiz, course


async def load_module(
    uow: UnitOfWork, module_id: UUID, org_id: UUID | None = None
) -> tuple[CourseModule, Course]:
    module = await uow.courses.get_module(module_id)
    if module is None:
        raise NotFound("Module not found.")
    course = await uow.courses.get(module.course_id)
    if course is None or not _visible(course, org_id):
        raise NotFound("Module not found.")
    return module, course


async def load_submission(
    uow: UnitOfWork, submission_id: UUID, org_id: UUID | None = None
) -> tuple[QuizSubmission, Quiz, Course]:
    submission = await uow.submissions.get(submission_id)
    if submission is None:
        raise NotFound("Submission not found.")
    quiz = await uow.quizzes.get(submission.quiz_id)
    course = await uow.courses.get(quiz.course_id) if quiz is not None else None
    if quiz is None or course is None:
        raise ReferentialError("Submission, quiz, or course not found.")
    if not _visible(course, org_id):
        raise NotFound("Submission not found.")
    return submission, quiz, course


async def course_ids_in_scope(uow: UnitOfWork, org_id: UUID | None) -> list[UUID]:
    return [c.id for c in await uow.courses.list(org_id)]
