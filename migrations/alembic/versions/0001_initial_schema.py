"""initial schema: users, catalogue, chapters, registrations, progress

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    subscription_tier = postgresql.ENUM(
        "free", "premium_800", "premium_2000",
        name="subscription_tier", create_type=False,
    )
    op.execute("CREATE TYPE subscription_tier AS ENUM ('free', 'premium_800', 'premium_2000')")

    module_difficulty = postgresql.ENUM(
        "Beginner", "Intermediate", "Advanced",
        name="module_difficulty", create_type=False,
    )
    op.execute("CREATE TYPE module_difficulty AS ENUM ('Beginner', 'Intermediate', 'Advanced')")

    # ── users ────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("day_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subscription_type", subscription_tier, nullable=False, server_default="free"),
        sa.Column("last_login_date", sa.Date(), nullable=True),
        sa.Column(
            "created_at", postgresql.TIMESTAMP(timezone=True),
            nullable=False, server_default=sa.text("now()"),
        ),
    )

    # ── catalogue ────────────────────────────────────────────────────────
    op.create_table(
        "categories",
        sa.Column("category_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
    )

    op.create_table(
        "modules",
        sa.Column("module_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "category_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.category_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("picture_url", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("difficulty", module_difficulty, nullable=False, server_default="Beginner"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("order_index", sa.SmallInteger(), nullable=False),
        sa.Column(
            "created_at", postgresql.TIMESTAMP(timezone=True),
            nullable=False, server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_modules_order_index", "modules", ["order_index"])
    op.create_index("ix_modules_is_published", "modules", ["is_published"])

    # ── chapters ─────────────────────────────────────────────────────────
    op.create_table(
        "chapters",
        sa.Column("chapter_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "module_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("modules.module_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("order_index", sa.SmallInteger(), nullable=False),
        sa.Column("estimated_time_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", postgresql.TIMESTAMP(timezone=True),
            nullable=False, server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_chapters_module_id_order", "chapters", ["module_id", "order_index"])

    op.create_table(
        "chapter_contents",
        sa.Column("content_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "chapter_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("chapters.chapter_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("video_url", sa.String(length=500), nullable=True),
        sa.Column("file_url", sa.String(length=500), nullable=True),
        sa.Column("quiz_id", postgresql.UUID(as_uuid=True), nullable=True),
    )
    op.create_index("ix_chapter_contents_chapter_id", "chapter_contents", ["chapter_id"])

    # ── learner state ────────────────────────────────────────────────────
    op.create_table(
        "module_registrations",
        sa.Column("registration_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "module_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("modules.module_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at", postgresql.TIMESTAMP(timezone=True),
            nullable=False, server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("user_id", "module_id", name="uq_module_registrations_user_module"),
    )
    op.create_index("ix_module_registrations_user_id", "module_registrations", ["user_id"])
    op.create_index("ix_module_registrations_module_id", "module_registrations", ["module_id"])

    op.create_table(
        "chapter_progress",
        sa.Column("progress_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "chapter_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("chapters.chapter_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("completed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "chapter_id", name="uq_chapter_progress_user_chapter"),
    )
    op.create_index("ix_chapter_progress_user_id", "chapter_progress", ["user_id"])


def downgrade() -> None:
    op.drop_table("chapter_progress")
    op.drop_table("module_registrations")
    op.drop_table("chapter_contents")
    op.drop_table("chapters")
    op.drop_table("modules")
    op.drop_table("categories")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS module_difficulty")
    op.execute("DROP TYPE IF EXISTS subscription_tier")
