"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in lms/models/.
Repos convert between SQLAlchemy rows and domain dataclasses.

User ids are the opaque ``sub`` claim of the identity provider; there is
no users table in this service.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from lms.db.engine import Base

# --- Catalog ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    org_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    has_certificate: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )


class LearningPathRow(Base):
    __tablename__ = "learning_paths"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    org_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    has_certificate: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )


class LearningPathCourseRow(Base):
    __tablename__ = "learning_path_courses"

    learning_path_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("learning_paths.id", ondelete="CASCADE"),
        primary_key=True,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class CourseModuleRow(Base):
    __tablename__ = "course_modules"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)


# --- Question bank ---


class QuizRow(Base):
    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # unique: a course has at most one quiz
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    time_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default="CLOSED_LOOP"
    )  # OPEN_LOOP|CLOSED_LOOP
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class QuestionRow(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # MULTIPLE_CHOICE|TRUE_FALSE|FILL_IN_THE_BLANK|SHORT_ANSWER
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_answer_id: Mapped[str] = mapped_column(Text, nullable=False)


class OptionRow(Base):
    __tablename__ = "options"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# --- Submissions ---


class QuizSubmissionRow(Base):
    __tablename__ = "quiz_submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="PENDING_REVIEW"
    )  # PENDING_REVIEW|COMPLETED|VOID
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    submitted_at: Mapped[int] = mapped_column(Integer, nullable=False)
    graded_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Objective part of the grade, fixed when the attempt is recorded.
    auto_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    auto_weight: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        Index("ix_quiz_submissions_user_quiz", "user_id", "quiz_id"),
        Index("ix_quiz_submissions_status", "status"),
    )


class AnswerRow(Base):
    __tablename__ = "answers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("quiz_submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # No FK: a quiz edit may delete the question after the attempt was recorded.
    question_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    selected_option_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    manual_score: Mapped[float | None] = mapped_column(Float, nullable=True)


# --- Completion lifecycle ---


class UserCompletedCourseRow(Base):
    __tablename__ = "user_completed_courses"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    completion_date: Mapped[int] = mapped_column(Integer, nullable=False)


class UserCompletedModuleRow(Base):
    __tablename__ = "user_completed_modules"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("course_modules.id", ondelete="CASCADE"),
        primary_key=True,
    )
    completed_at: Mapped[int] = mapped_column(Integer, nullable=False)


class ResetRequestRow(Base):
    __tablename__ = "reset_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="PENDING"
    )  # PENDING|APPROVED|REJECTED
    requested_at: Mapped[int] = mapped_column(Integer, nullable=False)
    resolved_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        # At most one PENDING request per (user, course).
        Index(
            "uq_reset_requests_pending",
            "user_id",
            "course_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
        ),
    )


# --- Notifications ---


class NotificationRow(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)
