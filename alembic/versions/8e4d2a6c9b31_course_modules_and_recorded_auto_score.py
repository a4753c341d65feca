"""course modules and recorded auto score

Revision ID: 8e4d2a6c9b31
Revises: 3c1f9a2b7d10
Create Date: 2026-10-17 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8e4d2a6c9b31"
down_revision: str | Sequence[str] | None = "3c1f9a2b7d10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Rows recorded before this revision keep NULL and are re-scored on demand.
    op.add_column("quiz_submissions", sa.Column("auto_score", sa.Float(), nullable=True))
    op.add_column("quiz_submissions", sa.Column("auto_weight", sa.Float(), nullable=True))

    op.create_table(
        "course_modules",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
    )
    op.create_index("ix_course_modules_course_id", "course_modules", ["course_id"])

    op.create_table(
        "user_completed_modules",
        sa.Column("user_id", sa.String(length=255), primary_key=True),
        sa.Column(
            "module_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("course_modules.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("completed_at", sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("user_completed_modules")
    op.drop_table("course_modules")
    op.drop_column("quiz_submissions", "auto_weight")
    op.drop_column("quiz_submissions", "auto_score")
