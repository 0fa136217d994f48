# backend/focuspair/repositories/factory.py
"""
Repository Factory for the FocusPair booking engine

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_log_repository import BookingLogRepository
    from .profile_repository import ProfileRepository
    from .report_repository import ReportRepository
    from .session_repository import SessionRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_session_repository(db: Session) -> "SessionRepository":
        """Create repository for session state and conditional transitions."""
        from .session_repository import SessionRepository

        return SessionRepository(db)

    @staticmethod
    def create_profile_repository(db: Session) -> "ProfileRepository":
        """Create repository for participant profiles and counters."""
        from .profile_repository import ProfileRepository

        return ProfileRepository(db)

    @staticmethod
    def create_booking_log_repository(db: Session) -> "BookingLogRepository":
        """Create repository for the append-only booking log."""
        from .booking_log_repository import BookingLogRepository

        return BookingLogRepository(db)

    @staticmethod
    def create_report_repository(db: Session) -> "ReportRepository":
        """Create repository for partner reports."""
        from .report_repository import ReportRepository

        return ReportRepository(db)
