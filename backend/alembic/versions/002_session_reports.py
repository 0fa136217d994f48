# backend/alembic/versions/002_session_reports.py
"""Session reports - participant complaints about a partner

Revision ID: 002_session_reports
Revises: 001_session_engine
Create Date: 2026-10-19 00:00:00.000000

One report per reporter per session, enforced by a unique index.
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_session_reports"
down_revision: Union[str, None] = "001_session_engine"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reports."""
    print("Creating reports table...")

    op.create_table(
        "reports",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("session_id", sa.String(26), nullable=False),
        sa.Column("reporter_id", sa.String(64), nullable=False),
        sa.Column("reported_id", sa.String(64), nullable=False),
        sa.Column("reason", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'reviewed', 'resolved')", name="ck_reports_status"
        ),
        sa.CheckConstraint("reporter_id <> reported_id", name="ck_reports_not_self"),
    )
    op.create_index("ix_reports_session_id", "reports", ["session_id"])
    op.create_index("ix_reports_reported_id", "reports", ["reported_id"])
    op.create_index(
        "uq_reports_session_reporter", "reports", ["session_id", "reporter_id"], unique=True
    )

    print("Reports table created")


def downgrade() -> None:
    print("Dropping reports table...")

    op.drop_index("uq_reports_session_reporter", table_name="reports")
    op.drop_index("ix_reports_reported_id", table_name="reports")
    op.drop_index("ix_reports_session_id", table_name="reports")
    op.drop_table("reports")
