"""initial learning schema: courses, modules, lessons, enrollments, progress, unlocks

Revision ID: 3f1a9c2d7b4e
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "3f1a9c2d7b4e"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

content_status = postgresql.ENUM(
    "draft", "scheduled", "live", name="content_status", create_type=False,
)
lesson_type = postgresql.ENUM(
    "video", "audio", "pdf", "text", "live", name="lesson_type", create_type=False,
)
content_category = postgresql.ENUM(
    "orientation", "transmission", "clarification", "embodiment",
    "inquiry", "meditation", "assignment",
    name="content_category", create_type=False,
)
enrollment_status = postgresql.ENUM(
    "active", "withdrawn", name="enrollment_status", create_type=False,
)


def upgrade() -> None:
    # ── Enums ────────────────────────────────────────────────────────────
    op.execute("CREATE TYPE content_status AS ENUM ('draft', 'scheduled', 'live')")
    op.execute("CREATE TYPE lesson_type AS ENUM ('video', 'audio', 'pdf', 'text', 'live')")
    op.execute(
        "CREATE TYPE content_category AS ENUM ('orientation', 'transmission', 'clarification', "
        "'embodiment', 'inquiry', 'meditation', 'assignment')"
    )
    op.execute("CREATE TYPE enrollment_status AS ENUM ('active', 'withdrawn')")

    # ── courses ──────────────────────────────────────────────────────────
    op.create_table(
        "courses",
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("instructor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_url", sa.String(length=500), nullable=True),
        sa.Column("promo_video_url", sa.String(length=500), nullable=True),
        sa.Column("status", content_status, nullable=False),
        sa.Column("release_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("course_id", name="pk_courses"),
    )
    op.create_index("ix_courses_tenant_id_status", "courses", ["tenant_id", "status"])
    op.create_index("ix_courses_created_at", "courses", ["created_at"])

    # ── course_modules ───────────────────────────────────────────────────
    op.create_table(
        "course_modules",
        sa.Column("module_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("status", content_status, nullable=False),
        sa.Column("release_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("unlock_after_days", sa.Integer(), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint(
            "unlock_after_days >= 0",
            name="ck_course_modules_unlock_after_days_non_negative",
        ),
        sa.ForeignKeyConstraint(
            ["course_id"], ["courses.course_id"],
            name="fk_course_modules_course_id_courses", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("module_id", name="pk_course_modules"),
    )
    op.create_index(
        "ix_course_modules_course_id_order", "course_modules", ["course_id", "order_index"],
    )

    # ── lessons ──────────────────────────────────────────────────────────
    op.create_table(
        "lessons",
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("module_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("lesson_type", lesson_type, nullable=False),
        sa.Column("content_url", sa.String(length=500), nullable=True),
        sa.Column("content_text", sa.Text(), nullable=True),
        sa.Column("scheduled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("meeting_url", sa.String(length=500), nullable=True),
        sa.Column("replay_url", sa.String(length=500), nullable=True),
        sa.Column("duration_sec", sa.Integer(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("status", content_status, nullable=False),
        sa.Column("release_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("content_category", content_category, nullable=True),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["module_id"], ["course_modules.module_id"],
            name="fk_lessons_module_id_course_modules", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("lesson_id", name="pk_lessons"),
    )
    op.create_index("ix_lessons_module_id_order", "lessons", ["module_id", "order_index"])

    # ── enrollments ──────────────────────────────────────────────────────
    op.create_table(
        "enrollments",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("course_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("enrolled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("started_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("status", enrollment_status, nullable=False),
        sa.Column("last_lesson_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("last_accessed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["course_id"], ["courses.course_id"],
            name="fk_enrollments_course_id_courses", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["last_lesson_id"], ["lessons.lesson_id"],
            name="fk_enrollments_last_lesson_id_lessons", ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("user_id", "course_id", name="pk_enrollments"),
    )
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])
    op.create_index(
        "ix_enrollments_user_last_accessed", "enrollments", ["user_id", "last_accessed_at"],
    )

    # ── lesson_progress ──────────────────────────────────────────────────
    op.create_table(
        "lesson_progress",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("completed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("last_position_sec", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(
            ["lesson_id"], ["lessons.lesson_id"],
            name="fk_lesson_progress_lesson_id_lessons", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("user_id", "lesson_id", name="pk_lesson_progress"),
    )
    op.create_index("ix_lesson_progress_lesson_id", "lesson_progress", ["lesson_id"])

    # ── module_unlocks ───────────────────────────────────────────────────
    op.create_table(
        "module_unlocks",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("module_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("unlocked_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("unlocked_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["module_id"], ["course_modules.module_id"],
            name="fk_module_unlocks_module_id_course_modules", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("user_id", "module_id", name="pk_module_unlocks"),
    )


def downgrade() -> None:
    op.drop_table("module_unlocks")
    op.drop_index("ix_lesson_progress_lesson_id", table_name="lesson_progress")
    op.drop_table("lesson_progress")
    op.drop_index("ix_enrollments_user_last_accessed", table_name="enrollments")
    op.drop_index("ix_enrollments_course_id", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("ix_lessons_module_id_order", table_name="lessons")
    op.drop_table("lessons")
    op.drop_index("ix_course_modules_course_id_order", table_name="course_modules")
    op.drop_table("course_modules")
    op.drop_index("ix_courses_created_at", table_name="courses")
    op.drop_index("ix_courses_tenant_id_status", table_name="courses")
    op.drop_table("courses")

    op.execute("DROP TYPE IF EXISTS enrollment_status")
    op.execute("DROP TYPE IF EXISTS content_category")
    op.execute("DROP TYPE IF EXISTS lesson_type")
    op.execute("DROP TYPE IF EXISTS content_status")
