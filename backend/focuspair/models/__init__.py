from .booking_log import BookingAction, BookingLogEntry
from .profile import ParticipantProfile, SubscriptionStatus
from .report import ReportStatus, SessionReport
from .session import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    FocusSession,
    SessionStatus,
)

__all__ = [
    "ACTIVE_STATUSES",
    "BookingAction",
    "BookingLogEntry",
    "FocusSession",
    "ParticipantProfile",
    "ReportStatus",
    "SessionReport",
    "SessionStatus",
    "SubscriptionStatus",
    "TERMINAL_STATUSES",
]
