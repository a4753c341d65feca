from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms.models.submission import QuizSubmission, SubmissionStatus


class SubmissionRepo(Protocol):
    async def add(self, submission: QuizSubmission) -> None: ...
    async def get(self, submission_id: UUID) -> QuizSubmission | None: ...
    async def list(
        self,
        *,
        status: SubmissionStatus | None = None,
        quiz_ids: Iterable[UUID] | None = None,
    ) -> list[QuizSubmission]: ...
    async def list_for_user(
        self, user_id: str, quiz_id: UUID | None = None
    ) -> list[QuizSubmission]: ...
    async def count_attempts(self, user_id: str, quiz_id: UUID) -> int: ...
    async def finalize(
        self,
        submission_id: UUID,
        *,
        score: int,
        graded_at: int,
        manual_scores: Mapping[UUID, float] | None = None,
    ) -> QuizSubmission: ...
    async def void_for_user(self, user_id: str, quiz_id: UUID) -> int: ...


class InMemorySubmissionRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, QuizSubmission] = {}

    async def add(self, submission: QuizSubmission) -> None:
        if submission.id in self._by_id:
            raise ValueError("submission already exists")
        self._by_id[submission.id] = submission

    async def get(self, submission_id: UUID) -> QuizSubmission | None:
        return self._by_id.get(submission_id)

    async def list(
        self,
        *,
        status: SubmissionStatus | None = None,
        quiz_ids: Iterable[UUID] | None = None,
    ) -> list[QuizSubmission]:
        wanted = set(quiz_ids) if quiz_ids is not None else None
        rows = [
            s
            for s in self._by_id.values()
            if (status is None or s.status == status)
            and (wanted is None or s.quiz_id in wanted)
        ]
        return sorted(rows, key=lambda s: s.submitted_at)

    async def list_for_user(
        self, user_id: str, quiz_id: UUID | None = None
    ) -> list[QuizSubmission]:
        rows = [
            s
            for s in self._by_id.values()
            if s.user_id == user_id and quiz_id in (None, s.quiz_id)
        ]
        return sorted(rows, key=lambda s: s.submitted_at)

    async def count_attempts(self, user_id: str, quiz_id: UUID) -> int:
        return sum(
            1
            for s in self._by_id.values()
            if s.user_id == user_id and s.quiz_id == quiz_id and s.status != "VOID"
        )

    async def finalize(
        self,
        submission_id: UUID,
        *,
        score: int,
        graded_at: int,
        manual_scores: Mapping[UUID, float] | None = None,
    ) -> QuizSubmission:
        submission = self._by_id.get(submission_id)
        if submission is None:
            raise KeyError("submission not found")
        scores = manual_scores or {}
        answers = tuple(
            replace(a, manual_score=scores[a.question_id])
            if a.question_id in scores
            else a
            for a in submission.answers
        )
        updated = replace(
            submission,
            status="COMPLETED",
            score=score,
            graded_at=graded_at,
            answers=answers,
        )
        self._by_id[submission_id] = updated
        return updated

    async def void_for_user(self, user_id: str, quiz_id: UUID) -> int:
        voided = 0
        for s in list(self._by_id.values()):
            if s.user_id == user_id and s.quiz_id == quiz_id and s.status != "VOID":
                self._by_id[s.id] = replace(s, status="VOID")
                voided += 1
        return voided

    def snapshot(self) -> dict[UUID, QuizSubmission]:
        return dict(self._by_id)

    def restore(self, state: dict[UUID, QuizSubmission]) -> None:
        self._by_id = dict(state)

    def clear(self) -> None:
        self._by_id.clear()
