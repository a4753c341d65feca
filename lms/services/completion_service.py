"""Completion records and certificate eligibility.

A course is passed when a completion record exists and its score meets
the quiz's passing score (any record counts when the course has no quiz).
Certificates are derived on demand; nothing records that one was issued.

Module progress is a set of ticks per learner and course module.  It does
not decide a pass; a failed graded attempt with retries left clears it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from lms.core.clock import utc_now
from lms.core.errors import Conflict, NotFound, ValidationFailed
from lms.db.unit_of_work import UnitOfWork
from lms.models.completion import ModuleCompletion, UserCompletedCourse
from lms.models.course import Course
from lms.models.quiz import Quiz
from lms.services.cache import invalidate_status
from lms.services.lookups import load_course, load_module
from lms.services.results import OperationResult, operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CertificateEligibility:
    eligible: bool
    title: str
    completion_date: int | None = None
    score: int | None = None
    missing_course_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True, slots=True)
class ModuleProgress:
    course_id: UUID
    module_ids: tuple[UUID, ...]  # course order
    completed_ids: tuple[UUID, ...]

    @property
    def percent_complete(self) -> int:
        if not self.module_ids:
            return 0
        return len(self.completed_ids) * 100 // len(self.module_ids)


def passes(record: UserCompletedCourse | None, quiz: Quiz | None) -> bool:
    if record is None:
        return False
    if quiz is None:
        return True
    return record.score >= quiz.passing_score


async def is_course_passed(uow: UnitOfWork, user_id: str, course_id: UUID) -> bool:
    record = await uow.completions.get(user_id, course_id)
    if record is None:
        return False
    return passes(record, await uow.quizzes.get_by_course(course_id))


@operation("course_certificate", failure_message="Failed to load certificate.")
async def course_certificate(
    uow: UnitOfWork, user_id: str, course_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[CertificateEligibility]:
    async with uow:
        course = await load_course(uow, course_id, org_id)
        record = await uow.completions.get(user_id, course_id)
        passed = passes(record, await uow.quizzes.get_by_course(course_id))

    if not course.has_certificate:
        return OperationResult.ok(
            "This course does not award a certificate.",
            CertificateEligibility(eligible=False, title=course.title),
        )
    if record is None or not passed:
        return OperationResult.ok(
            "Course not passed yet.",
            CertificateEligibility(
                eligible=False, title=course.title, missing_course_ids=(course.id,)
            ),
        )
    return OperationResult.ok(
        "Certificate available.",
        CertificateEligibility(
            eligible=True,
            title=course.title,
            completion_date=record.completion_date,
            score=record.score,
        ),
    )


@operation("learning_path_certificate", failure_message="Failed to load certificate.")
async def learning_path_certificate(
    uow: UnitOfWork, user_id: str, path_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[CertificateEligibility]:
    async with uow:
        path = await uow.courses.get_learning_path(path_id)
        if path is None or (org_id is not None and path.org_id != org_id):
            raise NotFound("Learning path not found.")
        missing: list[UUID] = []
        dates: list[int] = []
        for course_id in path.course_ids:
            record = await uow.completions.get(user_id, course_id)
            if record is not None and passes(
                record, await uow.quizzes.get_by_course(course_id)
            ):
                dates.append(record.completion_date)
            else:
                missing.append(course_id)

    if not path.has_certificate:
        return OperationResult.ok(
            "This learning path does not award a certificate.",
            CertificateEligibility(eligible=False, title=path.title),
        )
    if missing:
        return OperationResult.ok(
            "Learning path not completed yet.",
            CertificateEligibility(
                eligible=False, title=path.title, missing_course_ids=tuple(missing)
            ),
        )
    return OperationResult.ok(
        "Certificate available.",
        CertificateEligibility(
            eligible=True, title=path.title, completion_date=max(dates)
        ),
    )


@operation("complete_course", failure_message="Failed to record completion.")
async def complete_course(
    uow: UnitOfWork,
    user_id: str,
    course_id: UUID,
    score: int = 100,
    *,
    org_id: UUID | None = None,
) -> OperationResult[UserCompletedCourse | None]:
    """Record completion of a course whose completion is not quiz-driven."""
    if not 0 <= score <= 100:
        raise ValidationFailed("Invalid data provided.", ["score must be between 0 and 100"])

    async with uow:
        course: Course = await load_course(uow, course_id, org_id)
        quiz = await uow.quizzes.get_by_course(course_id)
        if quiz is not None and quiz.is_graded:
            raise Conflict("This course is completed by passing its quiz.")
        if quiz is not None:
            # Practice quizzes never produce completion records.
            return OperationResult.ok("Practice quiz courses are not tracked.")
        record = UserCompletedCourse(
            user_id=user_id, course_id=course.id, score=score, completion_date=utc_now()
        )
        await uow.completions.upsert(record)
        uow.after_commit(lambda: invalidate_status(user_id, course_id))

    logger.info("Recorded completion user=%s course=%s", user_id, course_id)
    return OperationResult.ok("Course completed.", record)


@operation("list_completions", failure_message="Failed to load completions.")
async def list_completions(
    uow: UnitOfWork, user_id: str
) -> OperationResult[list[UserCompletedCourse]]:
    async with uow:
        records = await uow.completions.list_by_user(user_id)
    return OperationResult.ok("Completions loaded.", records)


async def _progress(uow: UnitOfWork, user_id: str, course_id: UUID) -> ModuleProgress:
    modules = await uow.courses.list_modules(course_id)
    ids = tuple(m.id for m in modules)
    done = {r.module_id for r in await uow.completions.list_modules(user_id, ids)}
    return ModuleProgress(
        course_id=course_id,
        module_ids=ids,
        completed_ids=tuple(mid for mid in ids if mid in done),
    )


@operation("module_progress", failure_message="Failed to load module progress.")
async def module_progress(
    uow: UnitOfWork, user_id: str, course_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[ModuleProgress]:
    async with uow:
        await load_course(uow, course_id, org_id)
        progress = await _progress(uow, user_id, course_id)
    return OperationResult.ok("Module progress loaded.", progress)


@operation("set_module_completion", failure_message="Failed to update module progress.")
async def set_module_completion(
    uow: UnitOfWork,
    user_id: str,
    module_id: UUID,
    completed: bool,
    *,
    org_id: UUID | None = None,
) -> OperationResult[ModuleProgress]:
    """Tick a module off or clear it.  Repeating either is a no-op."""
    async with uow:
        module, course = await load_module(uow, module_id, org_id)
        if completed:
            await uow.completions.mark_module(
                ModuleCompletion(
                    user_id=user_id, module_id=module.id, completed_at=utc_now()
                )
            )
        else:
            await uow.completions.unmark_module(user_id, module.id)
        progress = await _progress(uow, user_id, course.id)

    logger.info(
        "Module %s user=%s module=%s",
        "completed" if completed else "cleared",
        user_id,
        module_id,
    )
    return OperationResult.ok("Module progress updated.", progress)
