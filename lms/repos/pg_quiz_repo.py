"""PostgreSQL implementation of QuizRepo."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import OptionRow, QuestionRow, QuizRow
from lms.models.quiz import Option, Question, Quiz, QuizType


class PgQuizRepo:
    """Satisfies the QuizRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, quiz_id: UUID) -> Quiz | None:
        row = await self._session.get(QuizRow, quiz_id, populate_existing=True)
        if row is None:
            return None
        return (await self._assemble([row]))[0]

    async def get_by_course(self, course_id: UUID) -> Quiz | None:
        stmt = select(QuizRow).where(QuizRow.course_id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return (await self._assemble([row]))[0]

    async def list_by_courses(self, course_ids: Iterable[UUID]) -> list[Quiz]:
        ids = list(course_ids)
        if not ids:
            return []
        stmt = select(QuizRow).where(QuizRow.course_id.in_(ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return await self._assemble(list(rows))

    async def add(self, quiz: Quiz) -> None:
        self._session.add(
            QuizRow(
                id=quiz.id,
                course_id=quiz.course_id,
                passing_score=quiz.passing_score,
                time_limit=quiz.time_limit,
                quiz_type=quiz.quiz_type,
                max_attempts=quiz.max_attempts,
            )
        )
        await self._session.flush()
        for question in quiz.questions:
            await self.add_question(question)

    async def update_settings(
        self,
        quiz_id: UUID,
        *,
        passing_score: int,
        time_limit: int,
        quiz_type: QuizType,
        max_attempts: int,
    ) -> None:
        stmt = (
            update(QuizRow)
            .where(QuizRow.id == quiz_id)
            .values(
                passing_score=passing_score,
                time_limit=time_limit,
                quiz_type=quiz_type,
                max_attempts=max_attempts,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("quiz not found")

    async def delete(self, quiz_id: UUID) -> bool:
        result = await self._session.execute(delete(QuizRow).where(QuizRow.id == quiz_id))
        return result.rowcount > 0

    async def add_question(self, question: Question) -> None:
        self._session.add(
            QuestionRow(
                id=question.id,
                quiz_id=question.quiz_id,
                text=question.text,
                type=question.type,
                weight=question.weight,
                position=question.position,
                correct_answer_id=question.correct_answer_id,
            )
        )
        await self._session.flush()
        for position, option in enumerate(question.options):
            self._session.add(
                OptionRow(
                    id=option.id,
                    question_id=question.id,
                    text=option.text,
                    position=position,
                )
            )
        if question.options:
            await self._session.flush()

    async def update_question(self, question: Question) -> None:
        stmt = (
            update(QuestionRow)
            .where(QuestionRow.id == question.id)
            .values(
                text=question.text,
                type=question.type,
                weight=question.weight,
                position=question.position,
                correct_answer_id=question.correct_answer_id,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("question not found")

    async def delete_questions(self, question_ids: Iterable[UUID]) -> None:
        ids = list(question_ids)
        if ids:
            await self._session.execute(
                delete(QuestionRow).where(QuestionRow.id.in_(ids))
            )

    async def replace_options(
        self, question_id: UUID, texts: Iterable[str]
    ) -> tuple[Option, ...]:
        await self.delete_options(question_id)
        created = []
        for position, text in enumerate(texts):
            option = Option(id=uuid4(), question_id=question_id, text=text)
            self._session.add(
                OptionRow(
                    id=option.id,
                    question_id=question_id,
                    text=text,
                    position=position,
                )
            )
            created.append(option)
        await self._session.flush()
        return tuple(created)

    async def delete_options(self, question_id: UUID) -> None:
        await self._session.execute(
            delete(OptionRow).where(OptionRow.question_id == question_id)
        )

    async def set_correct_answer(
        self, question_id: UUID, correct_answer_id: str
    ) -> None:
        stmt = (
            update(QuestionRow)
            .where(QuestionRow.id == question_id)
            .values(correct_answer_id=correct_answer_id)
        )
        await self._session.execute(stmt)

    async def _assemble(self, rows: list[QuizRow]) -> list[Quiz]:
        if not rows:
            return []
        quiz_ids = [r.id for r in rows]
        q_stmt = (
            select(QuestionRow)
            .where(QuestionRow.quiz_id.in_(quiz_ids))
            .order_by(QuestionRow.position)
            .execution_options(populate_existing=True)
        )
        question_rows = (await self._session.execute(q_stmt)).scalars().all()

        options: dict[UUID, list[Option]] = defaultdict(list)
        if question_rows:
            o_stmt = (
                select(OptionRow)
                .where(OptionRow.question_id.in_([q.id for q in question_rows]))
                .order_by(OptionRow.position)
                .execution_options(populate_existing=True)
            )
            for o in (await self._session.execute(o_stmt)).scalars().all():
                options[o.question_id].append(
                    Option(id=o.id, question_id=o.question_id, text=o.text)
                )

        questions: dict[UUID, list[Question]] = defaultdict(list)
        for q in question_rows:
            questions[q.quiz_id].append(
                Question(
                    id=q.id,
                    quiz_id=q.quiz_id,
                    text=q.text,
                    type=q.type,  # type: ignore[arg-type]
                    correct_answer_id=q.correct_answer_id,
                    weight=q.weight,
                    position=q.position,
                    options=tuple(options.get(q.id, ())),
                )
            )

        return [
            Quiz(
                id=r.id,
                course_id=r.course_id,
                passing_score=r.passing_score,
                time_limit=r.time_limit,
                quiz_type=r.quiz_type,  # type: ignore[arg-type]
                max_attempts=r.max_attempts,
                questions=tuple(questions.get(r.id, ())),
            )
            for r in rows
        ]
