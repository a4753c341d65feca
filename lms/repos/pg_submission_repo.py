"""PostgreSQL implementation of SubmissionRepo."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import AnswerRow, QuizSubmissionRow
from lms.models.submission import Answer, QuizSubmission, SubmissionStatus


class PgSubmissionRepo:
    """Satisfies the SubmissionRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, submission: QuizSubmission) -> None:
        self._session.add(
            QuizSubmissionRow(
                id=submission.id,
                quiz_id=submission.quiz_id,
                user_id=submission.user_id,
                status=submission.status,
                score=submission.score,
                submitted_at=submission.submitted_at,
                graded_at=submission.graded_at,
                auto_score=submission.auto_score,
                auto_weight=submission.auto_weight,
            )
        )
        await self._session.flush()
        for a in submission.answers:
            self._session.add(
                AnswerRow(
                    id=a.id,
                    submission_id=submission.id,
                    question_id=a.question_id,
                    selected_option_id=a.selected_option_id,
                    answer_text=a.answer_text,
                    manual_score=a.manual_score,
                )
            )
        if submission.answers:
            await self._session.flush()

    async def get(self, submission_id: UUID) -> QuizSubmission | None:
        row = await self._session.get(
            QuizSubmissionRow, submission_id, populate_existing=True
        )
        if row is None:
            return None
        return (await self._assemble([row]))[0]

    async def list(
        self,
        *,
        status: SubmissionStatus | None = None,
        quiz_ids: Iterable[UUID] | None = None,
    ) -> list[QuizSubmission]:
        stmt = select(QuizSubmissionRow).order_by(QuizSubmissionRow.submitted_at)
        if status is not None:
            stmt = stmt.where(QuizSubmissionRow.status == status)
        if quiz_ids is not None:
            stmt = stmt.where(QuizSubmissionRow.quiz_id.in_(list(quiz_ids)))
        rows = (await self._session.execute(stmt)).scalars().all()
        return await self._assemble(list(rows))

    async def list_for_user(
        self, user_id: str, quiz_id: UUID | None = None
    ) -> list[QuizSubmission]:
        stmt = (
            select(QuizSubmissionRow)
            .where(QuizSubmissionRow.user_id == user_id)
            .order_by(QuizSubmissionRow.submitted_at)
        )
        if quiz_id is not None:
            stmt = stmt.where(QuizSubmissionRow.quiz_id == quiz_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return await self._assemble(list(rows))

    async def count_attempts(self, user_id: str, quiz_id: UUID) -> int:
        stmt = select(func.count()).where(
            QuizSubmissionRow.user_id == user_id,
            QuizSubmissionRow.quiz_id == quiz_id,
            QuizSubmissionRow.status != "VOID",
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def finalize(
        self,
        submission_id: UUID,
        *,
        score: int,
        graded_at: int,
        manual_scores: Mapping[UUID, float] | None = None,
    ) -> QuizSubmission:
        stmt = (
            update(QuizSubmissionRow)
            .where(QuizSubmissionRow.id == submission_id)
            .values(status="COMPLETED", score=score, graded_at=graded_at)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("submission not found")
        for question_id, manual_score in (manual_scores or {}).items():
            await self._session.execute(
                update(AnswerRow)
                .where(
                    AnswerRow.submission_id == submission_id,
                    AnswerRow.question_id == question_id,
                )
                .values(manual_score=manual_score)
            )
        refreshed = await self.get(submission_id)
        if refreshed is None:
            raise KeyError("submission not found")
        return refreshed

    async def void_for_user(self, user_id: str, quiz_id: UUID) -> int:
        stmt = (
            update(QuizSubmissionRow)
            .where(
                QuizSubmissionRow.user_id == user_id,
                QuizSubmissionRow.quiz_id == quiz_id,
                QuizSubmissionRow.status != "VOID",
            )
            .values(status="VOID")
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def _assemble(self, rows: list[QuizSubmissionRow]) -> list[QuizSubmission]:
        if not rows:
            return []
        stmt = (
            select(AnswerRow)
            .where(AnswerRow.submission_id.in_([r.id for r in rows]))
            .execution_options(populate_existing=True)
        )
        answers: dict[UUID, list[Answer]] = defaultdict(list)
        for a in (await self._session.execute(stmt)).scalars().all():
            answers[a.submission_id].append(
                Answer(
                    id=a.id,
                    submission_id=a.submission_id,
                    question_id=a.question_id,
                    selected_option_id=a.selected_option_id,
                    answer_text=a.answer_text,
                    manual_score=a.manual_score,
                )
            )
        return [
            QuizSubmission(
                id=r.id,
                quiz_id=r.quiz_id,
                user_id=r.user_id,
                submitted_at=r.submitted_at,
                status=r.status,  # type: ignore[arg-type]
                score=r.score,
                graded_at=r.graded_at,
                answers=tuple(answers.get(r.id, ())),
                auto_score=r.auto_score,
                auto_weight=r.auto_weight,
            )
            for r in rows
        ]
