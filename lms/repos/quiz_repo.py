"""Quiz aggregate storage: quiz settings, questions and their options.

Reads always return the assembled aggregate (questions ordered by
position, options in creation order).  Writes are fine-grained so the
quiz editor can run its replace-and-relink steps inside one unit of work.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms.models.quiz import Option, Question, Quiz, QuizType


class QuizRepo(Protocol):
    async def get(self, quiz_id: UUID) -> Quiz | None: ...
    async def get_by_course(self, course_id: UUID) -> Quiz | None: ...
    async def list_by_courses(self, course_ids: Iterable[UUID]) -> list[Quiz]: ...
    async def add(self, quiz: Quiz) -> None: ...
    async def update_settings(
        self,
        quiz_id: UUID,
        *,
        passing_score: int,
        time_limit: int,
        quiz_type: QuizType,
        max_attempts: int,
    ) -> None: ...
    async def delete(self, quiz_id: UUID) -> bool: ...
    async def add_question(self, question: Question) -> None: ...
    async def update_question(self, question: Question) -> None: ...
    async def delete_questions(self, question_ids: Iterable[UUID]) -> None: ...
    async def replace_options(
        self, question_id: UUID, texts: Iterable[str]
    ) -> tuple[Option, ...]: ...
    async def delete_options(self, question_id: UUID) -> None: ...
    async def set_correct_answer(
        self, question_id: UUID, correct_answer_id: str
    ) -> None: ...


class InMemoryQuizRepo:
    def __init__(self) -> None:
        self._quizzes: dict[UUID, Quiz] = {}
        self._questions: dict[UUID, Question] = {}
        self._options: dict[UUID, tuple[Option, ...]] = {}  # key: question_id

    def _assemble(self, quiz: Quiz) -> Quiz:
        questions = sorted(
            (q for q in self._questions.values() if q.quiz_id == quiz.id),
            key=lambda q: q.position,
        )
        return replace(
            quiz,
            questions=tuple(
                replace(q, options=self._options.get(q.id, ())) for q in questions
            ),
        )

    async def get(self, quiz_id: UUID) -> Quiz | None:
        quiz = self._quizzes.get(quiz_id)
        return self._assemble(quiz) if quiz is not None else None

    async def get_by_course(self, course_id: UUID) -> Quiz | None:
        for quiz in self._quizzes.values():
            if quiz.course_id == course_id:
                return self._assemble(quiz)
        return None

    async def list_by_courses(self, course_ids: Iterable[UUID]) -> list[Quiz]:
        wanted = set(course_ids)
        return [
            self._assemble(q) for q in self._quizzes.values() if q.course_id in wanted
        ]

    async def add(self, quiz: Quiz) -> None:
        if any(q.course_id == quiz.course_id for q in self._quizzes.values()):
            raise ValueError("course already has a quiz")
        self._quizzes[quiz.id] = replace(quiz, questions=())
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
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise KeyError("quiz not found")
        self._quizzes[quiz_id] = replace(
            quiz,
            passing_score=passing_score,
            time_limit=time_limit,
            quiz_type=quiz_type,
            max_attempts=max_attempts,
        )

    async def delete(self, quiz_id: UUID) -> bool:
        if self._quizzes.pop(quiz_id, None) is None:
            return False
        doomed = [q.id for q in self._questions.values() if q.quiz_id == quiz_id]
        await self.delete_questions(doomed)
        return True

    async def add_question(self, question: Question) -> None:
        if question.id in self._questions:
            raise ValueError("question already exists")
        self._questions[question.id] = replace(question, options=())
        if question.options:
            self._options[question.id] = tuple(question.options)

    async def update_question(self, question: Question) -> None:
        if question.id not in self._questions:
            raise KeyError("question not found")
        self._questions[question.id] = replace(question, options=())

    async def delete_questions(self, question_ids: Iterable[UUID]) -> None:
        for question_id in list(question_ids):
            self._questions.pop(question_id, None)
            self._options.pop(question_id, None)

    async def replace_options(
        self, question_id: UUID, texts: Iterable[str]
    ) -> tuple[Option, ...]:
        created = tuple(Option.new(question_id=question_id, text=t) for t in texts)
        self._options[question_id] = created
        return created

    async def delete_options(self, question_id: UUID) -> None:
        self._options.pop(question_id, None)

    async def set_correct_answer(
        self, question_id: UUID, correct_answer_id: str
    ) -> None:
        question = self._questions.get(question_id)
        if question is None:
            raise KeyError("question not found")
        self._questions[question_id] = replace(
            question, correct_answer_id=correct_answer_id
        )

    def snapshot(self) -> tuple:
        return dict(self._quizzes), dict(self._questions), dict(self._options)

    def restore(self, state: tuple) -> None:
        quizzes, questions, options = state
        self._quizzes = dict(quizzes)
        self._questions = dict(questions)
        self._options = dict(options)

    def clear(self) -> None:
        self._quizzes.clear()
        self._questions.clear()
        self._options.clear()
