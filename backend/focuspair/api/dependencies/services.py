# backend/focuspair/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets service instances bound to its own database session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.cancellation_service import CancellationService
from ...services.match_reconciler import MatchReconciler
from ...services.no_show_monitor import NoShowMonitor
from ...services.notification_service import NotificationDispatcher
from ...services.orphan_session_sweeper import OrphanSessionSweeper
from ...services.profile_service import ProfileService
from ...services.reminder_service import ReminderService
from ...services.report_service import ReportService
from ...services.session_service import SessionService
from ...services.slot_availability_service import SlotAvailabilityService
from .database import get_db


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_slot_availability_service(
    db: Session = Depends(get_db),
    profile_service: ProfileService = Depends(get_profile_service),
) -> SlotAvailabilityService:
    return SlotAvailabilityService(db, profile_service=profile_service)


def get_booking_service(
    db: Session = Depends(get_db),
    profile_service: ProfileService = Depends(get_profile_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> BookingService:
    """
    Get BookingService instance.

    Args:
        db: Database session
        profile_service: Eligibility and profile lookups
        dispatcher: Post-commit notification enqueuer

    Returns:
        BookingService instance
    """
    return BookingService(db, profile_service=profile_service, dispatcher=dispatcher)


def get_session_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> SessionService:
    return SessionService(db, dispatcher=dispatcher)


def get_cancellation_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> CancellationService:
    return CancellationService(db, dispatcher=dispatcher)


def get_match_reconciler(
    db: Session = Depends(get_db),
    profile_service: ProfileService = Depends(get_profile_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> MatchReconciler:
    return MatchReconciler(db, profile_service=profile_service, dispatcher=dispatcher)


def get_no_show_monitor(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NoShowMonitor:
    return NoShowMonitor(db, dispatcher=dispatcher)


def get_reminder_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ReminderService:
    return ReminderService(db, dispatcher=dispatcher)


def get_orphan_session_sweeper(
    db: Session = Depends(get_db),
    profile_service: ProfileService = Depends(get_profile_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> OrphanSessionSweeper:
    return OrphanSessionSweeper(db, profile_service=profile_service, dispatcher=dispatcher)


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)
