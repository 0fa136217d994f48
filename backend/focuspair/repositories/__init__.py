"""
Repository layer for the FocusPair booking engine.

Repositories own every SQL statement; services own transactions.
"""

from .base_repository import BaseRepository, IRepository
from .booking_log_repository import BookingLogRepository
from .factory import RepositoryFactory
from .profile_repository import ProfileRepository
from .session_repository import SessionRepository

__all__ = [
    "BaseRepository",
    "BookingLogRepository",
    "IRepository",
    "ProfileRepository",
    "RepositoryFactory",
    "SessionRepository",
]
