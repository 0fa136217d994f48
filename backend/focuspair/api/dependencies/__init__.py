# backend/focuspair/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_participant_id, require_cron_secret
from .database import get_db
from .services import (
    get_booking_service,
    get_cancellation_service,
    get_match_reconciler,
    get_no_show_monitor,
    get_notification_dispatcher,
    get_orphan_session_sweeper,
    get_profile_service,
    get_reminder_service,
    get_report_service,
    get_session_service,
    get_slot_availability_service,
)

__all__ = [
    # Auth
    "get_current_participant_id",
    "require_cron_secret",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_cancellation_service",
    "get_match_reconciler",
    "get_no_show_monitor",
    "get_notification_dispatcher",
    "get_orphan_session_sweeper",
    "get_profile_service",
    "get_reminder_service",
    "get_report_service",
    "get_session_service",
    "get_slot_availability_service",
]
