# backend/focuspair/models/report.py
"""Reports one participant files about the other after a session."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, Index, String, Text

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin, UTCDateTime


class ReportStatus(str, Enum):
    PENDING = "pending"  # Awaiting moderation
    REVIEWED = "reviewed"
    RESOLVED = "resolved"


class SessionReport(TimestampMixin, Base):
    """
    A participant's complaint about their partner in one session.

    session_id is not a foreign key so reports outlive orphan cleanup of
    the session they refer to.
    """

    __tablename__ = "reports"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    session_id = Column(String(26), nullable=False, index=True)
    reporter_id = Column(String(64), nullable=False)
    reported_id = Column(String(64), nullable=False, index=True)
    reason = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ReportStatus.PENDING.value)
    admin_notes = Column(Text, nullable=True)
    reviewed_at = Column(UTCDateTime(), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'reviewed', 'resolved')", name="ck_reports_status"
        ),
        CheckConstraint("reporter_id <> reported_id", name="ck_reports_not_self"),
        Index("uq_reports_session_reporter", "session_id", "reporter_id", unique=True),
    )

    def __repr__(self) -> str:
        return f"<SessionReport {self.id} {self.session_id} {self.status}>"
