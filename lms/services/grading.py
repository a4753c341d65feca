"""Scoring arithmetic.  Pure functions, no I/O.

Objective questions are scored all-or-nothing against the stored correct
option id.  Free-text questions are scored by a reviewer; their score is
clamped to [0, weight].  The final grade is the weighted percentage of
both parts, rounded half-up to an integer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from lms.models.quiz import FREE_TEXT_TYPES, Quiz
from lms.models.submission import Answer


@dataclass(frozen=True, slots=True)
class GradeBreakdown:
    auto_score: float
    auto_weight: float
    manual_score: float
    manual_weight: float
    final_percentage: int
    manual_scores: dict[UUID, float] = field(default_factory=dict)

    @property
    def total_weight(self) -> float:
        return self.auto_weight + self.manual_weight


def auto_grade(quiz: Quiz, answers: Iterable[Answer]) -> tuple[float, float]:
    """Return (auto_score, auto_gradable_weight) for the objective questions.

    Unanswered objective questions earn nothing but their weight still
    counts toward the total.
    """
    selected = {a.question_id: a.selected_option_id for a in answers}
    score = 0.0
    weight = 0.0
    for question in quiz.questions:
        if not question.is_objective:
            continue
        weight += question.weight
        choice = selected.get(question.id)
        if choice is not None and choice == question.correct_answer_id:
            score += question.weight
    return score, weight


def clamp_manual_score(value: float | None, weight: float) -> float:
    if value is None:
        return 0.0
    return min(max(float(value), 0.0), weight)


def final_percentage(earned: float, total_weight: float) -> int:
    if total_weight <= 0:
        return 0
    ratio = Decimal(str(earned)) * 100 / Decimal(str(total_weight))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def breakdown(
    quiz: Quiz,
    answers: Iterable[Answer],
    manual_scores: Mapping[UUID, float] | None = None,
    *,
    auto: tuple[float, float] | None = None,
) -> GradeBreakdown:
    """Combine the auto score with reviewer scores for the free-text questions.

    ``auto`` is the (score, weight) pair recorded with the attempt.  Without
    it the objective questions are scored against the quiz as it is now.

    A free-text question the learner left blank scores 0 whatever the
    reviewer gives.  An answered one without a reviewer score falls back to
    the score already stored on the answer, then to 0.
    """
    answers = list(answers)
    auto_score, auto_weight = auto if auto is not None else auto_grade(quiz, answers)
    stored = {
        a.question_id: a.manual_score
        for a in answers
        if a.answer_text is not None and a.answer_text.strip()
    }
    given = manual_scores or {}

    clamped: dict[UUID, float] = {}
    manual_weight = 0.0
    for question in quiz.questions:
        if question.type not in FREE_TEXT_TYPES:
            continue
        manual_weight += question.weight
        if question.id not in stored:
            clamped[question.id] = 0.0
            continue
        raw = given.get(question.id, stored[question.id])
        clamped[question.id] = clamp_manual_score(raw, question.weight)

    manual_score = sum(clamped.values())
    return GradeBreakdown(
        auto_score=auto_score,
        auto_weight=auto_weight,
        manual_score=manual_score,
        manual_weight=manual_weight,
        final_percentage=final_percentage(
            auto_score + manual_score, auto_weight + manual_weight
        ),
        manual_scores=clamped,
    )
