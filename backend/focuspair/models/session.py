# backend/focuspair/models/session.py
"""
Focus session model.

A session starts life with one participant in `waiting` and becomes
`matched` once a second participant claims it. The three terminal states
(completed, cancelled, no_show) are never left again.

Every mutable column (status, user2_id, join flags, reminder_sent_at) is
only written through conditional UPDATEs in SessionRepository, never by
assigning attributes on a loaded instance.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, String, text

from ..core.ulid_helper import generate_room_token, generate_ulid
from ..database import Base
from .types import TimestampMixin, UTCDateTime


class SessionStatus(str, Enum):
    """Session lifecycle statuses."""

    WAITING = "waiting"  # One participant, open for matching
    MATCHED = "matched"  # Two participants, not yet finished
    COMPLETED = "completed"  # Structured phases finished
    CANCELLED = "cancelled"  # Cancelled by a participant
    NO_SHOW = "no_show"  # A participant failed to join in time


ACTIVE_STATUSES: FrozenSet[str] = frozenset({SessionStatus.WAITING.value, SessionStatus.MATCHED.value})
TERMINAL_STATUSES: FrozenSet[str] = frozenset(
    {
        SessionStatus.COMPLETED.value,
        SessionStatus.CANCELLED.value,
        SessionStatus.NO_SHOW.value,
    }
)


_ACTIVE_SQL = "status IN ('waiting', 'matched')"


class FocusSession(TimestampMixin, Base):
    """Paired co-working session between two participants."""

    __tablename__ = "sessions"

    id = Column(String(26), primary_key=True, default=generate_ulid)

    start_time = Column(UTCDateTime(), nullable=False, index=True)
    duration = Column(Integer, nullable=False)

    user1_id = Column(String(64), nullable=False, index=True)
    user2_id = Column(String(64), nullable=True, index=True)
    user1_joined = Column(Boolean, nullable=False, default=False)
    user2_joined = Column(Boolean, nullable=False, default=False)

    status = Column(String(20), nullable=False, default=SessionStatus.WAITING.value, index=True)
    room_token = Column(String(64), nullable=False, default=generate_room_token)

    reminder_sent_at = Column(UTCDateTime(), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)
    cancelled_at = Column(UTCDateTime(), nullable=True)
    cancelled_by_id = Column(String(64), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('waiting', 'matched', 'completed', 'cancelled', 'no_show')",
            name="ck_sessions_status",
        ),
        CheckConstraint("duration IN (25, 50)", name="ck_sessions_duration"),
        CheckConstraint(
            "status <> 'waiting' OR (user2_id IS NULL AND user1_joined = false AND user2_joined = false)",
            name="ck_sessions_waiting_unclaimed",
        ),
        CheckConstraint(
            "status <> 'matched' OR user2_id IS NOT NULL",
            name="ck_sessions_matched_has_partner",
        ),
        CheckConstraint(
            "user2_id IS NULL OR user2_id <> user1_id",
            name="ck_sessions_distinct_participants",
        ),
        # One active booking per owner per identical slot
        Index(
            "uq_sessions_owner_active_slot",
            "user1_id",
            "start_time",
            "duration",
            unique=True,
            postgresql_where=text(_ACTIVE_SQL),
            sqlite_where=text(_ACTIVE_SQL),
        ),
        Index("ix_sessions_status_start", "status", "start_time"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration)

    @property
    def participant_ids(self) -> Tuple[str, ...]:
        return tuple(uid for uid in (self.user1_id, self.user2_id) if uid)

    def is_participant(self, user_id: str) -> bool:
        return user_id in self.participant_ids

    def partner_of(self, user_id: str) -> Optional[str]:
        if user_id == self.user1_id:
            return self.user2_id
        if user_id == self.user2_id:
            return self.user1_id
        return None

    def __repr__(self) -> str:
        return f"<FocusSession {self.id} {self.status} {self.start_time.isoformat()}/{self.duration}>"
