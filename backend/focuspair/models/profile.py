# backend/focuspair/models/profile.py
"""
Participant profile as mirrored from the identity/profile service.

The booking engine reads these rows and only ever writes the counters
(no-show, strikes, completed sessions). Everything else is owned upstream.
"""

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String

from ..core.constants import DEFAULT_TIMEZONE
from ..database import Base
from .types import TimestampMixin, UTCDateTime


class SubscriptionStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    INACTIVE = "inactive"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"


class ParticipantProfile(TimestampMixin, Base):
    """Read-mostly projection of a user's profile."""

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    language = Column(String(8), nullable=False, default="en", index=True)
    timezone = Column(String(64), nullable=False, default=DEFAULT_TIMEZONE)

    # Eligibility inputs
    subscription_status = Column(String(20), nullable=False, default=SubscriptionStatus.TRIAL.value)
    trial_ends_at = Column(UTCDateTime(), nullable=True)
    is_banned = Column(Boolean, nullable=False, default=False)

    # Counters maintained by the engine
    no_show_count = Column(Integer, nullable=False, default=0)
    strike_count = Column(Integer, nullable=False, default=0)
    total_sessions = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("no_show_count >= 0", name="ck_profiles_no_show_count_non_negative"),
        CheckConstraint("strike_count >= 0", name="ck_profiles_strike_count_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<ParticipantProfile {self.id} lang={self.language}>"
