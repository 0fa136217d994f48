# backend/focuspair/models/booking_log.py
"""Append-only audit trail of booking actions."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, String

from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class BookingAction(str, Enum):
    BOOKED = "booked"
    CANCELLED = "cancelled"


class BookingLogEntry(Base):
    """
    One participant action against a session.

    session_id is deliberately not a foreign key: the match reconciler deletes
    the session it merges away, and audit rows must survive that.
    """

    __tablename__ = "booking_log"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(String(64), nullable=False, index=True)
    session_id = Column(String(26), nullable=False, index=True)
    action = Column(String(20), nullable=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    __table_args__ = (
        CheckConstraint("action IN ('booked', 'cancelled')", name="ck_booking_log_action"),
    )
