# backend/alembic/versions/001_session_engine.py
"""Session engine - profiles, sessions and booking log

Revision ID: 001_session_engine
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the three tables of the booking engine in their final form. The
partial unique index on sessions backs the one-active-booking-per-slot rule.
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_session_engine"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_SQL = "status IN ('waiting', 'matched')"


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create profiles, sessions and booking_log."""
    print("Creating session engine tables...")

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("language", sa.String(8), nullable=False, server_default="en"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="Europe/Amsterdam"),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="trial"),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("no_show_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("strike_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("no_show_count >= 0", name="ck_profiles_no_show_count_non_negative"),
        sa.CheckConstraint("strike_count >= 0", name="ck_profiles_strike_count_non_negative"),
    )
    op.create_index("ix_profiles_language", "profiles", ["language"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("user1_id", sa.String(64), nullable=False),
        sa.Column("user2_id", sa.String(64), nullable=True),
        sa.Column("user1_joined", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user2_joined", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default="waiting"),
        sa.Column("room_token", sa.String(64), nullable=False),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('waiting', 'matched', 'completed', 'cancelled', 'no_show')",
            name="ck_sessions_status",
        ),
        sa.CheckConstraint("duration IN (25, 50)", name="ck_sessions_duration"),
        sa.CheckConstraint(
            "status <> 'waiting' OR (user2_id IS NULL AND user1_joined = false AND user2_joined = false)",
            name="ck_sessions_waiting_unclaimed",
        ),
        sa.CheckConstraint(
            "status <> 'matched' OR user2_id IS NOT NULL",
            name="ck_sessions_matched_has_partner",
        ),
        sa.CheckConstraint(
            "user2_id IS NULL OR user2_id <> user1_id",
            name="ck_sessions_distinct_participants",
        ),
    )
    op.create_index("ix_sessions_start_time", "sessions", ["start_time"])
    op.create_index("ix_sessions_user1_id", "sessions", ["user1_id"])
    op.create_index("ix_sessions_user2_id", "sessions", ["user2_id"])
    op.create_index("ix_sessions_status", "sessions", ["status"])
    op.create_index("ix_sessions_status_start", "sessions", ["status", "start_time"])
    op.create_index(
        "uq_sessions_owner_active_slot",
        "sessions",
        ["user1_id", "start_time", "duration"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_SQL),
        sqlite_where=sa.text(ACTIVE_SQL),
    )

    op.create_table(
        "booking_log",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(26), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("action IN ('booked', 'cancelled')", name="ck_booking_log_action"),
    )
    op.create_index("ix_booking_log_user_id", "booking_log", ["user_id"])
    op.create_index("ix_booking_log_session_id", "booking_log", ["session_id"])

    print("Session engine tables created")


def downgrade() -> None:
    print("Dropping session engine tables...")

    op.drop_index("ix_booking_log_session_id", table_name="booking_log")
    op.drop_index("ix_booking_log_user_id", table_name="booking_log")
    op.drop_table("booking_log")

    op.drop_index("uq_sessions_owner_active_slot", table_name="sessions")
    op.drop_index("ix_sessions_status_start", table_name="sessions")
    op.drop_index("ix_sessions_status", table_name="sessions")
    op.drop_index("ix_sessions_user2_id", table_name="sessions")
    op.drop_index("ix_sessions_user1_id", table_name="sessions")
    op.drop_index("ix_sessions_start_time", table_name="sessions")
    op.drop_table("sessions")

    op.drop_index("ix_profiles_language", table_name="profiles")
    op.drop_table("profiles")
