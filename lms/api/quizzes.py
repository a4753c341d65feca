"""Quiz authoring and quiz-taking endpoints.

Correct answers are only included in quiz payloads for callers allowed
to edit quizzes; learners see questions and options only.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from lms.api.dependencies import Uow, require_permission
from lms.api.responses import ResultOut, respond
from lms.models.principal import Principal
from lms.models.quiz import QuestionType, Quiz, QuizType
from lms.models.submission import QuizSubmission
from lms.services import quiz_service, submission_service

router = APIRouter(prefix="/v1", tags=["quizzes"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class QuizSettingsIn(BaseModel):
    passing_score: int = 70
    time_limit: int = 0
    max_attempts: int = 0
    quiz_type: QuizType = "CLOSED_LOOP"

    def to_settings(self) -> quiz_service.QuizSettings:
        return quiz_service.QuizSettings(
            passing_score=self.passing_score,
            time_limit=self.time_limit,
            max_attempts=self.max_attempts,
            quiz_type=self.quiz_type,
        )


class QuestionIn(BaseModel):
    id: UUID | None = None
    text: str
    type: QuestionType
    weight: float = 1.0
    options: list[str] = Field(default_factory=list)
    correct_answer: str


class QuizUpdateIn(QuizSettingsIn):
    questions: list[QuestionIn] = Field(default_factory=list)


class OptionOut(BaseModel):
    id: str
    text: str


class QuestionOut(BaseModel):
    id: str
    text: str
    type: str
    weight: float
    position: int
    options: list[OptionOut]
    correct_answer_id: str | None = None


class QuizOut(BaseModel):
    id: str
    course_id: str
    passing_score: int
    time_limit: int
    quiz_type: str
    max_attempts: int
    requires_manual_grading: bool
    questions: list[QuestionOut]


class AnswerOut(BaseModel):
    question_id: str
    selected_option_id: str | None
    answer_text: str | None
    manual_score: float | None


class SubmissionOut(BaseModel):
    id: str
    quiz_id: str
    user_id: str
    status: str
    score: int | None
    submitted_at: int
    graded_at: int | None
    answers: list[AnswerOut]


class SubmissionIn(BaseModel):
    # question id -> option id (objective) or answer text (free-text)
    answers: dict[UUID, str | list[str]] = Field(default_factory=dict)


def quiz_out(quiz: Quiz, *, reveal_answers: bool) -> QuizOut:
    return QuizOut(
        id=str(quiz.id),
        course_id=str(quiz.course_id),
        passing_score=quiz.passing_score,
        time_limit=quiz.time_limit,
        quiz_type=quiz.quiz_type,
        max_attempts=quiz.max_attempts,
        requires_manual_grading=quiz.requires_manual_grading,
        questions=[
            QuestionOut(
                id=str(q.id),
                text=q.text,
                type=q.type,
                weight=q.weight,
                position=q.position,
                options=[OptionOut(id=str(o.id), text=o.text) for o in q.options],
                correct_answer_id=q.correct_answer_id if reveal_answers else None,
            )
            for q in quiz.questions
        ],
    )


def submission_out(submission: QuizSubmission) -> SubmissionOut:
    return SubmissionOut(
        id=str(submission.id),
        quiz_id=str(submission.quiz_id),
        user_id=submission.user_id,
        status=submission.status,
        score=submission.score,
        submitted_at=submission.submitted_at,
        graded_at=submission.graded_at,
        answers=[
            AnswerOut(
                question_id=str(a.question_id),
                selected_option_id=a.selected_option_id,
                answer_text=a.answer_text,
                manual_score=a.manual_score,
            )
            for a in submission.answers
        ],
    )


def _for(principal: Principal):
    reveal = principal.can("quizzes", "update")
    return lambda quiz: quiz_out(quiz, reveal_answers=reveal)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/courses/{course_id}/quiz", response_model=ResultOut[QuizOut])
async def create_quiz(
    course_id: UUID,
    payload: QuizSettingsIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("quizzes", "create"))],
) -> ResultOut:
    result = await quiz_service.add_quiz(
        uow, course_id, payload.to_settings(), org_id=principal.tenant_scope
    )
    return respond(result, response, _for(principal), success_status=status.HTTP_201_CREATED)


@router.get("/courses/{course_id}/quiz", response_model=ResultOut[QuizOut])
async def get_course_quiz(
    course_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("quizzes", "read"))],
) -> ResultOut:
    result = await quiz_service.get_quiz_for_course(
        uow, course_id, org_id=principal.tenant_scope
    )
    if result.success and result.data is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return ResultOut(success=False, message="Quiz not available for this course.")
    return respond(result, response, _for(principal))


@router.get("/quizzes/{quiz_id}", response_model=ResultOut[QuizOut])
async def get_quiz(
    quiz_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("quizzes", "read"))],
) -> ResultOut:
    result = await quiz_service.get_quiz(uow, quiz_id, org_id=principal.tenant_scope)
    return respond(result, response, _for(principal))


@router.put("/quizzes/{quiz_id}", response_model=ResultOut[QuizOut])
async def update_quiz(
    quiz_id: UUID,
    payload: QuizUpdateIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("quizzes", "update"))],
) -> ResultOut:
    drafts = [
        quiz_service.QuestionDraft(
            id=q.id,
            text=q.text,
            type=q.type,
            weight=q.weight,
            options=tuple(q.options),
            correct_answer=q.correct_answer,
        )
        for q in payload.questions
    ]
    result = await quiz_service.update_quiz(
        uow, quiz_id, payload.to_settings(), drafts, org_id=principal.tenant_scope
    )
    return respond(result, response, _for(principal))


@router.delete("/quizzes/{quiz_id}", response_model=ResultOut[None])
async def delete_quiz(
    quiz_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("quizzes", "delete"))],
) -> ResultOut:
    result = await quiz_service.delete_quiz(uow, quiz_id, org_id=principal.tenant_scope)
    return respond(result, response)


@router.post("/quizzes/{quiz_id}/submissions", response_model=ResultOut[SubmissionOut])
async def submit_quiz(
    quiz_id: UUID,
    payload: SubmissionIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("quizzes", "read"))],
) -> ResultOut:
    result = await submission_service.create_submission(
        uow,
        principal.user_id,
        quiz_id,
        payload.answers,
        org_id=principal.tenant_scope,
    )
    return respond(
        result, response, submission_out, success_status=status.HTTP_201_CREATED
    )
