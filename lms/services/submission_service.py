"""Quiz attempts: recording, grading and attempt bookkeeping.

Routing after an attempt is recorded:

  CLOSED_LOOP with free-text questions  -> PENDING_REVIEW (grading queue)
  CLOSED_LOOP, objective questions only -> graded immediately
  OPEN_LOOP                             -> COMPLETED with the objective
                                           score, no completion record

The objective score is fixed when the attempt is recorded; a later quiz
edit only changes what reviewers score.  Grades are posted by
``_post_grade``, whether a reviewer finalizes them or the auto-grader
does.  A completion record is written only while the quiz is CLOSED_LOOP.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

from lms.core.clock import utc_now
from lms.core.errors import AttemptLimitExceeded, Conflict, ValidationFailed
from lms.core.metrics import GRADES_POSTED, SUBMISSIONS_RECORDED
from lms.db.unit_of_work import UnitOfWork
from lms.models.completion import UserCompletedCourse
from lms.models.course import Course
from lms.models.quiz import FREE_TEXT_TYPES, Quiz
from lms.models.submission import Answer, QuizSubmission, SubmissionStatus
from lms.services import grading
from lms.services.cache import invalidate_status
from lms.services.completion_service import is_course_passed, passes
from lms.services.lookups import (
    course_ids_in_scope,
    load_course,
    load_quiz,
    load_submission,
)
from lms.services.notification_service import notify
from lms.services.results import OperationResult, operation

logger = logging.getLogger(__name__)

AttemptState = Literal["NOT_ATTEMPTED", "IN_PROGRESS", "GRADED", "RESET_PENDING"]

AnswerValue = str | list[str]


@dataclass(frozen=True, slots=True)
class GradingReview:
    submission: QuizSubmission
    quiz: Quiz
    course: Course
    breakdown: grading.GradeBreakdown


@dataclass(frozen=True, slots=True)
class AttemptStatus:
    course_id: UUID
    quiz_id: UUID | None
    state: AttemptState
    attempts_used: int
    max_attempts: int
    can_attempt: bool
    has_passed: bool
    score: int | None = None


def _build_answers(
    quiz: Quiz, submission_id: UUID, answers: Mapping[UUID, AnswerValue]
) -> tuple[Answer, ...]:
    known = {q.id for q in quiz.questions}
    unknown = [str(qid) for qid in answers if qid not in known]
    if unknown:
        raise ValidationFailed(
            "Answers reference questions outside this quiz.", sorted(unknown)
        )
    built = []
    for question in quiz.questions:
        if question.id not in answers:
            continue
        value = answers[question.id]
        if isinstance(value, list):
            value = value[0] if value else ""
        if question.is_objective:
            built.append(
                Answer.new(
                    submission_id=submission_id,
                    question_id=question.id,
                    selected_option_id=value or None,
                )
            )
        else:
            built.append(
                Answer.new(
                    submission_id=submission_id,
                    question_id=question.id,
                    answer_text=value,
                )
            )
    return tuple(built)


async def _post_grade(
    uow: UnitOfWork,
    submission: QuizSubmission,
    quiz: Quiz,
    course: Course,
    score: int,
    manual_scores: Mapping[UUID, float] | None = None,
) -> QuizSubmission:
    now = utc_now()
    graded = await uow.submissions.finalize(
        submission.id, score=score, graded_at=now, manual_scores=manual_scores
    )
    if not quiz.is_graded:
        # The quiz became a practice quiz while this attempt waited for review.
        await notify(
            uow,
            submission.user_id,
            "Quiz Graded",
            f'Your practice quiz for "{course.title}" has been reviewed. '
            f"Your score is {score}%.",
        )
        uow.after_commit(lambda: invalidate_status(submission.user_id, course.id))
        return graded

    await uow.completions.upsert(
        UserCompletedCourse(
            user_id=submission.user_id,
            course_id=course.id,
            score=score,
            completion_date=now,
        )
    )
    passed = score >= quiz.passing_score
    if not passed and quiz.max_attempts > 0:
        used = await uow.submissions.count_attempts(submission.user_id, quiz.id)
        if used < quiz.max_attempts:
            await _restart_modules(uow, submission.user_id, course.id)
    await notify(
        uow,
        submission.user_id,
        "Quiz Graded",
        f'Your quiz for "{course.title}" has been graded. '
        f"You {'passed' if passed else 'failed'} with a score of {score}%.",
    )
    uow.after_commit(lambda: invalidate_status(submission.user_id, course.id))
    return graded


async def _restart_modules(uow: UnitOfWork, user_id: str, course_id: UUID) -> None:
    """A failed attempt with retries left sends the learner back through the modules."""
    modules = await uow.courses.list_modules(course_id)
    if not modules:
        return
    cleared = await uow.completions.clear_modules(user_id, [m.id for m in modules])
    logger.info(
        "Cleared module progress user=%s course=%s modules=%d",
        user_id,
        course_id,
        cleared,
    )


@operation("create_submission", failure_message="Failed to submit quiz for review.")
async def create_submission(
    uow: UnitOfWork,
    user_id: str,
    quiz_id: UUID,
    answers: Mapping[UUID, AnswerValue],
    *,
    org_id: UUID | None = None,
) -> OperationResult[QuizSubmission]:
    async with uow:
        quiz, course = await load_quiz(uow, quiz_id, org_id)

        if quiz.is_graded and await is_course_passed(uow, user_id, course.id):
            raise Conflict("Quiz already passed.")
        if quiz.max_attempts > 0:
            used = await uow.submissions.count_attempts(user_id, quiz.id)
            if used >= quiz.max_attempts:
                raise AttemptLimitExceeded("No attempts left for this quiz.")

        submission_id = uuid4()
        built = _build_answers(quiz, submission_id, answers)
        auto_score, auto_weight = grading.auto_grade(quiz, built)
        submission = QuizSubmission(
            id=submission_id,
            quiz_id=quiz.id,
            user_id=user_id,
            submitted_at=utc_now(),
            answers=built,
            auto_score=auto_score,
            auto_weight=auto_weight,
        )
        await uow.submissions.add(submission)

        if quiz.requires_manual_grading:
            message = "Quiz submitted for review."
        elif quiz.is_graded:
            score = grading.breakdown(
                quiz, submission.answers, auto=submission.recorded_auto
            ).final_percentage
            submission = await _post_grade(uow, submission, quiz, course, score)
            message = "Quiz graded."
        else:
            submission = await uow.submissions.finalize(
                submission_id,
                score=grading.final_percentage(auto_score, auto_weight),
                graded_at=utc_now(),
            )
            uow.after_commit(lambda: invalidate_status(user_id, course.id))
            message = "Practice quiz completed."

    SUBMISSIONS_RECORDED.labels(quiz_type=quiz.quiz_type, status=submission.status).inc()
    if submission.status == "COMPLETED":
        _count_grade(quiz, submission.score)
    logger.info(
        "Recorded submission=%s quiz=%s user=%s status=%s",
        submission.id,
        quiz.id,
        user_id,
        submission.status,
    )
    return OperationResult.ok(message, submission)


def _count_grade(quiz: Quiz, score: int | None) -> None:
    if not quiz.is_graded:
        outcome = "practice"
    elif score is not None and score >= quiz.passing_score:
        outcome = "passed"
    else:
        outcome = "failed"
    GRADES_POSTED.labels(outcome=outcome).inc()


@operation("list_submissions", failure_message="Failed to load submissions.")
async def list_submissions(
    uow: UnitOfWork,
    *,
    status: SubmissionStatus | None = "PENDING_REVIEW",
    org_id: UUID | None = None,
) -> OperationResult[list[QuizSubmission]]:
    async with uow:
        quiz_ids = None
        if org_id is not None:
            course_ids = await course_ids_in_scope(uow, org_id)
            quiz_ids = [q.id for q in await uow.quizzes.list_by_courses(course_ids)]
        rows = await uow.submissions.list(status=status, quiz_ids=quiz_ids)
    return OperationResult.ok("Submissions loaded.", rows)


@operation("get_submission", failure_message="Failed to load submission.")
async def get_submission(
    uow: UnitOfWork, submission_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[QuizSubmission]:
    async with uow:
        submission, _, _ = await load_submission(uow, submission_id, org_id)
    return OperationResult.ok("Submission loaded.", submission)


def _check_manual_scores(quiz: Quiz, manual_scores: Mapping[UUID, float]) -> None:
    free_text = {q.id for q in quiz.questions if q.type in FREE_TEXT_TYPES}
    stray = sorted(str(qid) for qid in manual_scores if qid not in free_text)
    if stray:
        raise ValidationFailed(
            "Manual scores may only be given for free-text questions.", stray
        )


@operation("review_submission", failure_message="Failed to load submission.")
async def review_submission(
    uow: UnitOfWork,
    submission_id: UUID,
    manual_scores: Mapping[UUID, float] | None = None,
    *,
    org_id: UUID | None = None,
) -> OperationResult[GradingReview]:
    """Preview the grade for the given reviewer scores.  Persists nothing."""
    async with uow:
        submission, quiz, course = await load_submission(uow, submission_id, org_id)
    _check_manual_scores(quiz, manual_scores or {})
    review = GradingReview(
        submission=submission,
        quiz=quiz,
        course=course,
        breakdown=grading.breakdown(
            quiz, submission.answers, manual_scores, auto=submission.recorded_auto
        ),
    )
    return OperationResult.ok("Grading preview.", review)


@operation("grade_submission", failure_message="Failed to finalize grade.")
async def grade_submission(
    uow: UnitOfWork,
    submission_id: UUID,
    *,
    final_score: int | None = None,
    manual_scores: Mapping[UUID, float] | None = None,
    org_id: UUID | None = None,
) -> OperationResult[QuizSubmission]:
    if final_score is not None and not 0 <= final_score <= 100:
        raise ValidationFailed(
            "Invalid data provided.", ["final_score must be between 0 and 100"]
        )

    async with uow:
        submission, quiz, course = await load_submission(uow, submission_id, org_id)
        if not submission.is_pending:
            raise Conflict("This submission has already been graded.")
        _check_manual_scores(quiz, manual_scores or {})

        result = grading.breakdown(
            quiz, submission.answers, manual_scores, auto=submission.recorded_auto
        )
        score = final_score if final_score is not None else result.final_percentage
        answered = {a.question_id for a in submission.answers}
        graded = await _post_grade(
            uow,
            submission,
            quiz,
            course,
            score,
            {qid: s for qid, s in result.manual_scores.items() if qid in answered},
        )

    _count_grade(quiz, score)
    logger.info(
        "Graded submission=%s user=%s score=%d passing=%d",
        submission_id,
        submission.user_id,
        score,
        quiz.passing_score,
    )
    return OperationResult.ok("Grade finalized.", graded)


@operation("attempt_status", failure_message="Failed to load course status.")
async def attempt_status(
    uow: UnitOfWork, user_id: str, course_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[AttemptStatus]:
    async with uow:
        await load_course(uow, course_id, org_id)
        quiz = await uow.quizzes.get_by_course(course_id)
        record = await uow.completions.get(user_id, course_id)
        pending_reset = await uow.reset_requests.get_pending(user_id, course_id)
        if quiz is None:
            submissions: list[QuizSubmission] = []
            used = 0
        else:
            submissions = [
                s
                for s in await uow.submissions.list_for_user(user_id, quiz.id)
                if s.status != "VOID"
            ]
            used = len(submissions)

    has_passed = passes(record, quiz)
    if pending_reset is not None:
        state: AttemptState = "RESET_PENDING"
    elif any(s.is_pending for s in submissions):
        state = "IN_PROGRESS"
    elif record is not None or submissions:
        state = "GRADED"
    else:
        state = "NOT_ATTEMPTED"

    max_attempts = quiz.max_attempts if quiz is not None else 0
    can_attempt = (
        quiz is not None
        and not (quiz.is_graded and has_passed)
        and (max_attempts == 0 or used < max_attempts)
    )
    score = record.score if record is not None else None
    if score is None and submissions and submissions[-1].score is not None:
        score = submissions[-1].score
    return OperationResult.ok(
        "Course status loaded.",
        AttemptStatus(
            course_id=course_id,
            quiz_id=quiz.id if quiz is not None else None,
            state=state,
            attempts_used=used,
            max_attempts=max_attempts,
            can_attempt=can_attempt,
            has_passed=has_passed,
            score=score,
        ),
    )
