# backend/focuspair/services/cancellation_service.py
"""
Cancellation Guard

Cancelling is allowed strictly more than CANCELLATION_WINDOW before the
start. Exactly one hour out is already too late.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.constants import CANCELLATION_WINDOW
from ..core.exceptions import (
    CancellationWindowClosedException,
    NotParticipantException,
    SessionAlreadyTerminalException,
    SessionNotFoundException,
)
from ..core.timezone_utils import minutes_between, utc_now
from ..models.booking_log import BookingAction
from ..models.session import FocusSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_log_repository import BookingLogRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .notification_service import NotificationDispatcher, SessionEvent

logger = logging.getLogger(__name__)


class CancellationService(BaseService):
    def __init__(
        self,
        db: Session,
        session_repository: Optional[SessionRepository] = None,
        booking_log_repository: Optional[BookingLogRepository] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        super().__init__(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.booking_log = booking_log_repository or RepositoryFactory.create_booking_log_repository(db)
        self.dispatcher = dispatcher or NotificationDispatcher()

    @BaseService.measure_operation("cancel_session")
    def cancel(self, requester_id: str, session_id: str) -> FocusSession:
        """
        Cancel a waiting or matched session on behalf of a participant.

        Raises:
            SessionNotFoundException: Unknown session
            NotParticipantException: Requester is neither user1 nor user2
            SessionAlreadyTerminalException: Already cancelled, completed or no-show,
                including losing the race to another terminal transition
            CancellationWindowClosedException: Not strictly more than one hour before start
        """
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        if not session.is_participant(requester_id):
            raise NotParticipantException(session_id, "cancel")
        if session.is_terminal:
            raise SessionAlreadyTerminalException(session_id, session.status)

        now = utc_now()
        if not now < session.start_time - CANCELLATION_WINDOW:
            raise CancellationWindowClosedException(
                required_minutes=int(CANCELLATION_WINDOW.total_seconds() // 60),
                remaining_minutes=minutes_between(session.start_time, now),
            )

        with self.transaction():
            cancelled = self.session_repository.cancel_if_active(session_id, requester_id, now)
            if cancelled:
                self.booking_log.append(requester_id, session_id, BookingAction.CANCELLED)
        prometheus_metrics.record_transition("cancel", cancelled)

        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        if not cancelled:
            raise SessionAlreadyTerminalException(session_id, session.status)

        self.log_operation("cancel_session", session_id=session_id, user_id=requester_id)
        partner_id = session.partner_of(requester_id)
        if partner_id:
            self.dispatcher.dispatch(SessionEvent.CANCELLED, session.id, [partner_id])
        return session
