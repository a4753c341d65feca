"""Quiz authoring: settings, questions and options.

An edit is all-or-nothing.  Questions are matched by id: new ones are
inserted, missing ones deleted, the rest updated in place.  Options of
objective questions are always recreated, so the correct answer is
declared by option *text* and relinked to the new option id once the
options exist.  Option ids therefore change on every edit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID, uuid4

from lms.core.errors import Conflict, ReferentialError, ValidationFailed
from lms.db.unit_of_work import UnitOfWork
from lms.models.quiz import (
    PLACEHOLDER_ANSWER,
    QUESTION_TYPES,
    Question,
    QuestionType,
    Quiz,
    QuizType,
    is_objective,
)
from lms.services.cache import invalidate_course_status
from lms.services.lookups import load_course, load_quiz
from lms.services.results import OperationResult, operation

logger = logging.getLogger(__name__)

INVALID_DATA = "Invalid data provided."


@dataclass(frozen=True, slots=True)
class QuizSettings:
    passing_score: int = 70
    time_limit: int = 0
    max_attempts: int = 0
    quiz_type: QuizType = "CLOSED_LOOP"


@dataclass(frozen=True, slots=True)
class QuestionDraft:
    """One question as submitted by the quiz editor.

    correct_answer is option text for objective types and the literal
    expected answer for free-text types.
    """

    text: str
    type: QuestionType
    correct_answer: str
    weight: float = 1.0
    options: tuple[str, ...] = ()
    id: UUID | None = None


def validate_settings(settings: QuizSettings) -> list[str]:
    errors = []
    if not 0 <= settings.passing_score <= 100:
        errors.append("passing_score must be between 0 and 100")
    if settings.time_limit < 0:
        errors.append("time_limit must be >= 0")
    if settings.max_attempts < 0:
        errors.append("max_attempts must be >= 0")
    if settings.quiz_type not in ("OPEN_LOOP", "CLOSED_LOOP"):
        errors.append("quiz_type must be OPEN_LOOP or CLOSED_LOOP")
    return errors


def validate_questions(drafts: Sequence[QuestionDraft]) -> list[str]:
    errors = []
    seen: set[UUID] = set()
    for n, draft in enumerate(drafts, start=1):
        label = f"question {n}"
        if draft.id is not None:
            if draft.id in seen:
                errors.append(f"{label}: duplicate question id")
            seen.add(draft.id)
        if not draft.text.strip():
            errors.append(f"{label}: text must be non-empty")
        if draft.type not in QUESTION_TYPES:
            errors.append(f"{label}: unknown question type {draft.type!r}")
            continue
        if not draft.weight > 0:
            errors.append(f"{label}: weight must be > 0")
        if not draft.correct_answer.strip():
            errors.append(f"{label}: a correct answer is required")
        if is_objective(draft.type):
            if len(draft.options) < 2:
                errors.append(f"{label}: at least 2 options are required")
            if any(not o.strip() for o in draft.options):
                errors.append(f"{label}: option text must be non-empty")
    return errors


@operation("add_quiz", failure_message="Failed to create quiz.")
async def add_quiz(
    uow: UnitOfWork,
    course_id: UUID,
    settings: QuizSettings,
    *,
    org_id: UUID | None = None,
) -> OperationResult[Quiz]:
    errors = validate_settings(settings)
    if errors:
        raise ValidationFailed(INVALID_DATA, errors)

    async with uow:
        await load_course(uow, course_id, org_id)
        if await uow.quizzes.get_by_course(course_id) is not None:
            raise Conflict("This course already has a quiz.")
        quiz = Quiz.new(
            course_id=course_id,
            passing_score=settings.passing_score,
            time_limit=settings.time_limit,
            quiz_type=settings.quiz_type,
            max_attempts=settings.max_attempts,
        )
        await uow.quizzes.add(quiz)

    logger.info("Created quiz=%s for course=%s", quiz.id, course_id)
    return OperationResult.ok("Quiz created successfully.", quiz)


@operation("update_quiz", failure_message="Failed to update quiz.")
async def update_quiz(
    uow: UnitOfWork,
    quiz_id: UUID,
    settings: QuizSettings,
    questions: Sequence[QuestionDraft],
    *,
    org_id: UUID | None = None,
) -> OperationResult[Quiz]:
    errors = validate_settings(settings) + validate_questions(questions)
    if errors:
        raise ValidationFailed(INVALID_DATA, errors)

    async with uow:
        quiz, _ = await load_quiz(uow, quiz_id, org_id)
        await uow.quizzes.update_settings(
            quiz_id,
            passing_score=settings.passing_score,
            time_limit=settings.time_limit,
            quiz_type=settings.quiz_type,
            max_attempts=settings.max_attempts,
        )

        existing = {q.id for q in quiz.questions}
        incoming = {d.id for d in questions if d.id is not None}
        foreign = incoming - existing
        if foreign:
            raise ReferentialError(
                f"Question {sorted(map(str, foreign))[0]} does not belong to this quiz."
            )
        removed = existing - incoming
        await uow.quizzes.delete_questions(removed)

        for position, draft in enumerate(questions):
            await _save_question(uow, quiz_id, draft, position)

        updated = await uow.quizzes.get(quiz_id)
        uow.after_commit(lambda: invalidate_course_status(quiz.course_id))

    logger.info(
        "Updated quiz=%s questions=%d removed=%d",
        quiz_id,
        len(questions),
        len(removed),
    )
    return OperationResult.ok("Quiz updated successfully.", updated)


async def _save_question(
    uow: UnitOfWork, quiz_id: UUID, draft: QuestionDraft, position: int
) -> None:
    objective = is_objective(draft.type)
    question = Question(
        id=draft.id or uuid4(),
        quiz_id=quiz_id,
        text=draft.text.strip(),
        type=draft.type,
        correct_answer_id=PLACEHOLDER_ANSWER if objective else draft.correct_answer.strip(),
        weight=float(draft.weight),
        position=position,
    )
    if draft.id is None:
        await uow.quizzes.add_question(question)
    else:
        await uow.quizzes.update_question(question)

    if not objective:
        await uow.quizzes.delete_options(question.id)
        return

    options = await uow.quizzes.replace_options(question.id, draft.options)
    matches = [o for o in options if o.text == draft.correct_answer]
    if len(matches) != 1:
        raise ReferentialError(
            f'Correct answer "{draft.correct_answer}" must match exactly one '
            f'option of question "{question.text}".'
        )
    await uow.quizzes.set_correct_answer(question.id, str(matches[0].id))


@operation("get_quiz", failure_message="Failed to load quiz.")
async def get_quiz(
    uow: UnitOfWork, quiz_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[Quiz]:
    async with uow:
        quiz, _ = await load_quiz(uow, quiz_id, org_id)
    return OperationResult.ok("Quiz loaded.", quiz)


@operation("get_quiz_for_course", failure_message="Failed to load quiz.")
async def get_quiz_for_course(
    uow: UnitOfWork, course_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[Quiz | None]:
    async with uow:
        await load_course(uow, course_id, org_id)
        quiz = await uow.quizzes.get_by_course(course_id)
    return OperationResult.ok("Quiz loaded.", quiz)


@operation("delete_quiz", failure_message="Failed to delete quiz.")
async def delete_quiz(
    uow: UnitOfWork, quiz_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[None]:
    async with uow:
        quiz, _ = await load_quiz(uow, quiz_id, org_id)
        await uow.quizzes.delete(quiz_id)
        uow.after_commit(lambda: invalidate_course_status(quiz.course_id))
    logger.info("Deleted quiz=%s", quiz_id)
    return OperationResult.ok("Quiz deleted successfully.")
