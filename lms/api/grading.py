"""Manual grading queue for reviewers."""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from lms.api.dependencies import Uow, require_permission
from lms.api.quizzes import QuizOut, SubmissionOut, quiz_out, submission_out
from lms.api.responses import ResultOut, respond
from lms.models.principal import Principal
from lms.services import submission_service
from lms.services.submission_service import GradingReview

router = APIRouter(prefix="/v1/grading", tags=["grading"])


class ManualScoresIn(BaseModel):
    manual_scores: dict[UUID, float] = Field(default_factory=dict)


class GradeIn(ManualScoresIn):
    final_score: int | None = None


class BreakdownOut(BaseModel):
    auto_score: float
    auto_weight: float
    manual_score: float
    manual_weight: float
    final_percentage: int
    manual_scores: dict[str, float]


class ReviewOut(BaseModel):
    course_title: str
    submission: SubmissionOut
    quiz: QuizOut
    breakdown: BreakdownOut


def review_out(review: GradingReview) -> ReviewOut:
    b = review.breakdown
    return ReviewOut(
        course_title=review.course.title,
        submission=submission_out(review.submission),
        quiz=quiz_out(review.quiz, reveal_answers=True),
        breakdown=BreakdownOut(
            auto_score=b.auto_score,
            auto_weight=b.auto_weight,
            manual_score=b.manual_score,
            manual_weight=b.manual_weight,
            final_percentage=b.final_percentage,
            manual_scores={str(k): v for k, v in b.manual_scores.items()},
        ),
    )


@router.get("/submissions", response_model=ResultOut[list[SubmissionOut]])
async def list_submissions(
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("grading", "read"))],
    status: Literal["PENDING_REVIEW", "COMPLETED", "VOID"] = "PENDING_REVIEW",
) -> ResultOut:
    result = await submission_service.list_submissions(
        uow, status=status, org_id=principal.tenant_scope
    )
    return respond(result, response, lambda rows: [submission_out(s) for s in rows])


@router.get("/submissions/{submission_id}", response_model=ResultOut[SubmissionOut])
async def get_submission(
    submission_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("grading", "read"))],
) -> ResultOut:
    result = await submission_service.get_submission(
        uow, submission_id, org_id=principal.tenant_scope
    )
    return respond(result, response, submission_out)


@router.post("/submissions/{submission_id}/review", response_model=ResultOut[ReviewOut])
async def review_submission(
    submission_id: UUID,
    payload: ManualScoresIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("grading", "read"))],
) -> ResultOut:
    result = await submission_service.review_submission(
        uow, submission_id, payload.manual_scores, org_id=principal.tenant_scope
    )
    return respond(result, response, review_out)


@router.post("/submissions/{submission_id}/grade", response_model=ResultOut[SubmissionOut])
async def grade_submission(
    submission_id: UUID,
    payload: GradeIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("grading", "update"))],
) -> ResultOut:
    result = await submission_service.grade_submission(
        uow,
        submission_id,
        final_score=payload.final_score,
        manual_scores=payload.manual_scores,
        org_id=principal.tenant_scope,
    )
    return respond(result, response, submission_out)
