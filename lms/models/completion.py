from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

ResetStatus = Literal["PENDING", "APPROVED", "REJECTED"]


@dataclass(frozen=True, slots=True)
class UserCompletedCourse:
    """Denormalized completion record, unique per (user_id, course_id)."""

    user_id: str
    course_id: UUID
    score: int
    completion_date: int


@dataclass(frozen=True, slots=True)
class ModuleCompletion:
    """A learner ticked off one course module.  Unique per (user_id, module_id)."""

    user_id: str
    module_id: UUID
    completed_at: int


@dataclass(frozen=True, slots=True)
class ResetRequest:
    id: UUID
    user_id: str
    course_id: UUID
    requested_at: int
    status: ResetStatus = "PENDING"
    resolved_at: int | None = None

    @staticmethod
    def new(*, user_id: str, course_id: UUID, requested_at: int) -> ResetRequest:
        return ResetRequest(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            requested_at=requested_at,
        )
