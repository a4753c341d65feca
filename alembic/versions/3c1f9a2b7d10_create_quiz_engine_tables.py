"""create quiz engine tables

Revision ID: 3c1f9a2b7d10
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1f9a2b7d10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("org_id", _uuid(), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("has_certificate", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_courses_org_id", "courses", ["org_id"])

    op.create_table(
        "learning_paths",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("org_id", _uuid(), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("has_certificate", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_learning_paths_org_id", "learning_paths", ["org_id"])

    op.create_table(
        "learning_path_courses",
        sa.Column(
            "learning_path_id",
            _uuid(),
            sa.ForeignKey("learning_paths.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "course_id",
            _uuid(),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
    )

    op.create_table(
        "quizzes",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column(
            "course_id",
            _uuid(),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("passing_score", sa.Integer(), nullable=False),
        sa.Column("time_limit", sa.Integer(), nullable=False),
        sa.Column("quiz_type", sa.String(length=16), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
    )

    op.create_table(
        "questions",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column(
            "quiz_id",
            _uuid(),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("correct_answer_id", sa.Text(), nullable=False),
    )
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])

    op.create_table(
        "options",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column(
            "question_id",
            _uuid(),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
    )
    op.create_index("ix_options_question_id", "options", ["question_id"])

    op.create_table(
        "quiz_submissions",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column(
            "quiz_id",
            _uuid(),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("submitted_at", sa.Integer(), nullable=False),
        sa.Column("graded_at", sa.Integer(), nullable=True),
    )
    op.create_index(
        "ix_quiz_submissions_user_quiz", "quiz_submissions", ["user_id", "quiz_id"]
    )
    op.create_index("ix_quiz_submissions_status", "quiz_submissions", ["status"])

    op.create_table(
        "answers",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column(
            "submission_id",
            _uuid(),
            sa.ForeignKey("quiz_submissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_id", _uuid(), nullable=False),
        sa.Column("selected_option_id", sa.String(length=64), nullable=True),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.Column("manual_score", sa.Float(), nullable=True),
    )
    op.create_index("ix_answers_submission_id", "answers", ["submission_id"])

    op.create_table(
        "user_completed_courses",
        sa.Column("user_id", sa.String(length=255), primary_key=True),
        sa.Column(
            "course_id",
            _uuid(),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("completion_date", sa.Integer(), nullable=False),
    )

    op.create_table(
        "reset_requests",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column(
            "course_id",
            _uuid(),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("requested_at", sa.Integer(), nullable=False),
        sa.Column("resolved_at", sa.Integer(), nullable=True),
    )
    op.create_index(
        "uq_reset_requests_pending",
        "reset_requests",
        ["user_id", "course_id"],
        unique=True,
        postgresql_where=sa.text("status = 'PENDING'"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.Integer(), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("reset_requests")
    op.drop_table("user_completed_courses")
    op.drop_table("answers")
    op.drop_table("quiz_submissions")
    op.drop_table("options")
    op.drop_table("questions")
    op.drop_table("quizzes")
    op.drop_table("learning_path_courses")
    op.drop_table("learning_paths")
    op.drop_table("courses")
