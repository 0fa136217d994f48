# backend/focuspair/repositories/booking_log_repository.py
"""
Booking log repository.

Audit appends must never undo the booking they describe, so each insert runs
inside its own SAVEPOINT and a failure only discards that savepoint.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.booking_log import BookingAction, BookingLogEntry
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingLogRepository(BaseRepository[BookingLogEntry]):
    def __init__(self, db: Session):
        super().__init__(db, BookingLogEntry)
        self.logger = logging.getLogger(__name__)

    def append(
        self, user_id: str, session_id: str, action: BookingAction
    ) -> Optional[BookingLogEntry]:
        """Best-effort insert; returns None when the write failed."""
        try:
            with self.db.begin_nested():
                entry = BookingLogEntry(
                    user_id=user_id, session_id=session_id, action=action.value
                )
                self.db.add(entry)
                self.db.flush()
            return entry
        except SQLAlchemyError as exc:
            self.logger.warning(
                "Booking log append failed for user %s session %s (%s): %s",
                user_id,
                session_id,
                action.value,
                exc,
            )
            return None
