"""
Service layer for the FocusPair booking engine.

Services own business rules and transactions; repositories own SQL.
"""

from .base import BaseService
from .booking_service import BookAction, BookingResult, BookingService
from .cancellation_service import CancellationService
from .match_reconciler import MatchReconciler
from .no_show_monitor import NoShowMonitor
from .notification_service import NotificationDispatcher, NotificationService, SessionEvent
from .profile_service import ProfileService, ResolvedProfile, Unresolved
from .reminder_service import ReminderService
from .session_service import JoinResult, SessionListKind, SessionService
from .slot_availability_service import SlotAvailabilityService, SlotDescriptor, SlotStatus

__all__ = [
    "BaseService",
    "BookAction",
    "BookingResult",
    "BookingService",
    "CancellationService",
    "JoinResult",
    "MatchReconciler",
    "NoShowMonitor",
    "NotificationDispatcher",
    "NotificationService",
    "ProfileService",
    "ReminderService",
    "ResolvedProfile",
    "SessionEvent",
    "SessionListKind",
    "SessionService",
    "SlotAvailabilityService",
    "SlotDescriptor",
    "SlotStatus",
    "Unresolved",
]
