from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

QuestionType = Literal[
    "MULTIPLE_CHOICE", "TRUE_FALSE", "FILL_IN_THE_BLANK", "SHORT_ANSWER"
]
QuizType = Literal["OPEN_LOOP", "CLOSED_LOOP"]

QUESTION_TYPES: tuple[str, ...] = (
    "MULTIPLE_CHOICE",
    "TRUE_FALSE",
    "FILL_IN_THE_BLANK",
    "SHORT_ANSWER",
)
OBJECTIVE_TYPES = frozenset({"MULTIPLE_CHOICE", "TRUE_FALSE"})
FREE_TEXT_TYPES = frozenset({"FILL_IN_THE_BLANK", "SHORT_ANSWER"})

# Stored on a freshly created objective question until its options exist.
PLACEHOLDER_ANSWER = "__pending__"


def is_objective(question_type: str) -> bool:
    return question_type in OBJECTIVE_TYPES


@dataclass(frozen=True, slots=True)
class Option:
    id: UUID
    question_id: UUID
    text: str

    @staticmethod
    def new(*, question_id: UUID, text: str) -> Option:
        return Option(id=uuid4(), question_id=question_id, text=text)


@dataclass(frozen=True, slots=True)
class Question:
    id: UUID
    quiz_id: UUID
    text: str
    type: QuestionType
    correct_answer_id: str  # option id (objective) or literal answer text
    weight: float = 1.0
    position: int = 0
    options: tuple[Option, ...] = ()

    @property
    def is_objective(self) -> bool:
        return is_objective(self.type)

    def option_by_id(self, option_id: str | None) -> Option | None:
        if option_id is None:
            return None
        for option in self.options:
            if str(option.id) == option_id:
                return option
        return None


@dataclass(frozen=True, slots=True)
class Quiz:
    id: UUID
    course_id: UUID
    passing_score: int = 70
    time_limit: int = 0  # minutes, 0 = unlimited
    quiz_type: QuizType = "CLOSED_LOOP"
    max_attempts: int = 0  # 0 = unlimited
    questions: tuple[Question, ...] = ()

    @staticmethod
    def new(
        *,
        course_id: UUID,
        passing_score: int,
        time_limit: int = 0,
        quiz_type: QuizType = "CLOSED_LOOP",
        max_attempts: int = 0,
    ) -> Quiz:
        return Quiz(
            id=uuid4(),
            course_id=course_id,
            passing_score=passing_score,
            time_limit=time_limit,
            quiz_type=quiz_type,
            max_attempts=max_attempts,
        )

    @property
    def is_graded(self) -> bool:
        return self.quiz_type == "CLOSED_LOOP"

    @property
    def requires_manual_grading(self) -> bool:
        return self.is_graded and any(
            q.type in FREE_TEXT_TYPES for q in self.questions
        )

    def question_by_id(self, question_id: UUID) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None
