from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

SubmissionStatus = Literal["PENDING_REVIEW", "COMPLETED", "VOID"]


@dataclass(frozen=True, slots=True)
class Answer:
    id: UUID
    submission_id: UUID
    question_id: UUID
    selected_option_id: str | None = None  # objective questions
    answer_text: str | None = None  # free-text questions
    manual_score: float | None = None  # set by grading only

    @staticmethod
    def new(
        *,
        submission_id: UUID,
        question_id: UUID,
        selected_option_id: str | None = None,
        answer_text: str | None = None,
    ) -> Answer:
        return Answer(
            id=uuid4(),
            submission_id=submission_id,
            question_id=question_id,
            selected_option_id=selected_option_id,
            answer_text=answer_text,
        )


@dataclass(frozen=True, slots=True)
class QuizSubmission:
    """One attempt by one user at one quiz."""

    id: UUID
    quiz_id: UUID
    user_id: str
    submitted_at: int
    status: SubmissionStatus = "PENDING_REVIEW"
    score: int | None = None  # final percentage once graded
    graded_at: int | None = None
    answers: tuple[Answer, ...] = ()
    # Objective part, scored against the quiz as it stood at submission.
    auto_score: float | None = None
    auto_weight: float | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == "PENDING_REVIEW"

    @property
    def recorded_auto(self) -> tuple[float, float] | None:
        if self.auto_score is None or self.auto_weight is None:
            return None
        return self.auto_score, self.auto_weight

    def answer_for(self, question_id: UUID) -> Answer | None:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None
