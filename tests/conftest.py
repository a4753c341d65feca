from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from lms.db.unit_of_work import InMemoryUnitOfWork, memory_store
from lms.main import app
from lms.models.course import Course
from lms.models.quiz import Quiz, QuizType
from lms.services import course_service, quiz_service, token_service
from lms.services.cache import cache_service
from lms.services.quiz_service import QuestionDraft, QuizSettings
from lms.services.task_queue import task_queue

# Ensure repo root is on sys.path so `import lms` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

ORG_A = UUID("00000000-0000-0000-0000-00000000000a")
ORG_B = UUID("00000000-0000-0000-0000-00000000000b")


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Clear the in-memory repositories between tests."""
    memory_store.clear()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "clear"):
        cache_service.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "clear"):
        task_queue.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
    org_id: UUID | None = ORG_A,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(
        sub=username,
        roles=roles,
        org_id=str(org_id) if org_id is not None else None,
    )


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    """Learner token (default role staff) in ORG_A."""
    return mint_token()


@pytest.fixture
def admin_token() -> str:
    """Tenant admin token in ORG_A."""
    return mint_token(username="test-admin", roles=["admin"])


# ---------------------------------------------------------------------------
# Seed helpers (run the real services against the in-memory store)
# ---------------------------------------------------------------------------


def new_uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(memory_store)


def create_test_course(
    title: str = "Food Safety Basics",
    org_id: UUID | None = ORG_A,
    has_certificate: bool = False,
) -> Course:
    result = asyncio.run(
        course_service.add_course(
            new_uow(), title, org_id=org_id, has_certificate=has_certificate
        )
    )
    assert result.success, result.message
    return result.data


def create_test_quiz(
    course: Course,
    questions: Sequence[QuestionDraft],
    *,
    quiz_type: QuizType = "CLOSED_LOOP",
    passing_score: int = 70,
    max_attempts: int = 0,
) -> Quiz:
    settings = QuizSettings(
        passing_score=passing_score, max_attempts=max_attempts, quiz_type=quiz_type
    )
    created = asyncio.run(quiz_service.add_quiz(new_uow(), course.id, settings))
    assert created.success, created.message
    updated = asyncio.run(
        quiz_service.update_quiz(new_uow(), created.data.id, settings, questions)
    )
    assert updated.success, (updated.message, updated.errors)
    return updated.data


def mc(text: str, correct: str = "B", weight: float = 1.0) -> QuestionDraft:
    """Multiple-choice draft with options A-D."""
    return QuestionDraft(
        text=text,
        type="MULTIPLE_CHOICE",
        correct_answer=correct,
        weight=weight,
        options=("A", "B", "C", "D"),
    )


def short(text: str, expected: str = "sample answer", weight: float = 1.0) -> QuestionDraft:
    return QuestionDraft(
        text=text, type="SHORT_ANSWER", correct_answer=expected, weight=weight
    )


def correct_option(quiz: Quiz, position: int) -> str:
    return quiz.questions[position].correct_answer_id


def wrong_option(quiz: Quiz, position: int) -> str:
    question = quiz.questions[position]
    return next(
        str(o.id) for o in question.options if str(o.id) != question.correct_answer_id
    )
