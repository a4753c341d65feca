"""Per-course learner activity for the admin dashboard.

Figures come from recorded activity only: a learner counts toward a
course once they have a non-void attempt or a completion record there.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from lms.db.unit_of_work import UnitOfWork
from lms.services.completion_service import passes
from lms.services.results import OperationResult, operation


@dataclass(frozen=True, slots=True)
class CourseAnalytics:
    course_id: UUID
    title: str
    learners: int
    completions: int
    passes: int
    pass_rate: float  # passes / completions, 0.0 when nothing completed
    average_score: float | None


@operation("course_analytics", failure_message="Failed to load analytics.")
async def course_analytics(
    uow: UnitOfWork, *, org_id: UUID | None = None
) -> OperationResult[list[CourseAnalytics]]:
    async with uow:
        courses = await uow.courses.list(org_id)
        course_ids = [c.id for c in courses]
        quizzes = {q.course_id: q for q in await uow.quizzes.list_by_courses(course_ids)}
        course_by_quiz = {q.id: q.course_id for q in quizzes.values()}
        submissions = (
            await uow.submissions.list(status=None, quiz_ids=list(course_by_quiz))
            if course_by_quiz
            else []
        )
        completions = await uow.completions.list_by_courses(course_ids)

    learners: dict[UUID, set[str]] = defaultdict(set)
    for s in submissions:
        if s.status != "VOID":
            learners[course_by_quiz[s.quiz_id]].add(s.user_id)
    by_course = defaultdict(list)
    for record in completions:
        learners[record.course_id].add(record.user_id)
        by_course[record.course_id].append(record)

    rows = []
    for course in courses:
        records = by_course.get(course.id, [])
        passed = sum(1 for r in records if passes(r, quizzes.get(course.id)))
        rows.append(
            CourseAnalytics(
                course_id=course.id,
                title=course.title,
                learners=len(learners.get(course.id, ())),
                completions=len(records),
                passes=passed,
                pass_rate=round(passed / len(records), 4) if records else 0.0,
                average_score=(
                    round(sum(r.score for r in records) / len(records), 2)
                    if records
                    else None
                ),
            )
        )
    return OperationResult.ok("Analytics loaded.", rows)
