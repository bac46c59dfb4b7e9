"""Create accounts, study sessions and progress tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("total_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("current_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("next_level_xp", sa.Integer(), server_default=sa.text("100"), nullable=False),
        sa.Column("level", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("longest_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_active_date", sa.Date(), nullable=True),
        sa.Column("total_time_spent", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_cards_learned", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_decks_completed", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_correct_answers", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_answers", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.CheckConstraint("current_xp >= 0 AND current_xp < next_level_xp", name="ck_users_current_xp"),
        sa.CheckConstraint("longest_streak >= streak", name="ck_users_longest_streak"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_last_active_date", "users", ["last_active_date"], unique=False)

    op.create_table(
        "study_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("guest_token", sa.String(length=255), nullable=True),
        sa.Column("is_guest", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("deck_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("total_cards", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'in_progress'"), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("correct_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("incorrect_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("skipped_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("session_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.CheckConstraint("status IN ('in_progress', 'completed', 'abandoned')", name="ck_study_sessions_status"),
    )
    op.create_index("ix_study_sessions_user_id", "study_sessions", ["user_id"], unique=False)
    op.create_index("ix_study_sessions_guest_token", "study_sessions", ["guest_token"], unique=False)
    op.create_index("ix_study_sessions_started_at", "study_sessions", ["started_at"], unique=False)
    op.create_index(
        "ix_study_sessions_unclaimed_guest",
        "study_sessions",
        ["guest_token"],
        unique=False,
        postgresql_where=sa.text("user_id IS NULL AND is_guest"),
    )

    op.create_table(
        "daily_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("cards_studied", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("cards_learned", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("xp_earned", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("sessions_completed", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),
    )
    op.create_index("ix_daily_progress_user_id", "daily_progress", ["user_id"], unique=False)

    op.create_table(
        "user_card_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("card_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'new'"), nullable=False),
        sa.Column("repetitions", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("times_seen", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("times_correct", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("times_incorrect", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.UniqueConstraint("user_id", "card_id", name="uq_user_card_progress"),
    )
    op.create_index("ix_user_card_progress_user_id", "user_card_progress", ["user_id"], unique=False)
    op.create_index("ix_user_card_progress_card_id", "user_card_progress", ["card_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_user_card_progress_card_id", table_name="user_card_progress")
    op.drop_index("ix_user_card_progress_user_id", table_name="user_card_progress")
    op.drop_table("user_card_progress")

    op.drop_index("ix_daily_progress_user_id", table_name="daily_progress")
    op.drop_table("daily_progress")

    op.drop_index("ix_study_sessions_unclaimed_guest", table_name="study_sessions")
    op.drop_index("ix_study_sessions_started_at", table_name="study_sessions")
    op.drop_index("ix_study_sessions_guest_token", table_name="study_sessions")
    op.drop_index("ix_study_sessions_user_id", table_name="study_sessions")
    op.drop_table("study_sessions")

    op.drop_index("ix_users_last_active_date", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
