# backend/focuspair/services/booking_service.py
"""
Booking Coordinator for the FocusPair booking engine

Turns a slot request into either a new waiting session or a claim on an
existing one. No locks are taken: the claim is a single conditional UPDATE
and the duplicate-booking rule is backed by a partial unique index, so
concurrent requests for the same slot resolve inside the database.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.constants import SESSION_DURATIONS
from ..core.exceptions import (
    InvalidTimeException,
    SessionConflictException,
    SessionNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.booking_log import BookingAction
from ..models.session import FocusSession, SessionStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_log_repository import BookingLogRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .notification_service import NotificationDispatcher, SessionEvent
from .profile_service import ProfileService, ResolvedProfile

logger = logging.getLogger(__name__)

DUPLICATE_BOOKING_MESSAGE = "You already have a session at this time"


class BookAction(str, Enum):
    CREATE = "create"
    JOIN = "join"


@dataclass(frozen=True)
class BookingResult:
    session: FocusSession
    instant_match: bool = False

    @property
    def message(self) -> str:
        if self.instant_match:
            return "Instant match found!"
        if self.session.status == SessionStatus.MATCHED.value:
            return "Successfully joined session!"
        return "Session booked! We'll find you a partner."


class BookingService(BaseService):
    """
    Synchronous booking entry point.

    Notifications are only dispatched after the transaction that made the
    booking has committed.
    """

    def __init__(
        self,
        db: Session,
        session_repository: Optional[SessionRepository] = None,
        booking_log_repository: Optional[BookingLogRepository] = None,
        profile_service: Optional[ProfileService] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        super().__init__(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.booking_log = booking_log_repository or RepositoryFactory.create_booking_log_repository(db)
        self.profile_service = profile_service or ProfileService(db)
        self.dispatcher = dispatcher or NotificationDispatcher()

    @BaseService.measure_operation("book")
    def book(
        self,
        requester_id: str,
        start_time: datetime,
        duration: int,
        action: BookAction,
        target_session_id: Optional[str] = None,
    ) -> BookingResult:
        """
        Create a waiting session or claim an existing one.

        Args:
            requester_id: Authenticated user id
            start_time: Requested slot instant
            duration: 25 or 50 minutes
            action: create a new session or join target_session_id
            target_session_id: Session to join (join only)

        Returns:
            BookingResult with the session the requester now participates in

        Raises:
            InvalidTimeException: Start time (the target's, for join) not in the future
            IneligibleException: Requester may not book
            SessionNotFoundException: Join target does not exist
            SessionConflictException: Duplicate booking or join target no longer open
        """
        now = utc_now()
        start_time = ensure_utc(start_time)

        if duration not in SESSION_DURATIONS:
            raise ValidationException(
                f"Invalid duration {duration}. Available options: {list(SESSION_DURATIONS)}",
                code="INVALID_DURATION",
            )
        if action is BookAction.CREATE and start_time <= now:
            raise InvalidTimeException("Cannot book sessions in the past", requested=start_time)

        requester = self.profile_service.require_eligible(requester_id, now)

        self.log_operation("book", user_id=requester_id, action=action.value)
        if action is BookAction.JOIN:
            # The target row decides the slot; start_time in the request is not consulted
            return self._join(requester, target_session_id, now)
        return self._create(requester, start_time, duration)

    def _join(
        self, requester: ResolvedProfile, target_session_id: Optional[str], now: datetime
    ) -> BookingResult:
        if not target_session_id:
            raise ValidationException(
                "Session ID required for join action", code="SESSION_ID_REQUIRED"
            )

        target = self.session_repository.get_by_id(target_session_id)
        if target is None:
            raise SessionNotFoundException(target_session_id)
        if target.user1_id == requester.id:
            raise SessionConflictException(
                "Cannot join your own session", details={"session_id": target.id}
            )
        if target.start_time <= now:
            raise InvalidTimeException(
                "This session has already started", requested=target.start_time
            )

        owner = self.profile_service.resolve(target.user1_id)
        if not isinstance(owner, ResolvedProfile) or owner.language != requester.language:
            raise SessionConflictException(
                "This session is not open to you", details={"session_id": target.id}
            )

        self._ensure_no_duplicate(requester.id, target.start_time, target.duration)

        if not self._claim(target.id, requester.id):
            if self.session_repository.get_by_id(target.id) is None:
                raise SessionNotFoundException(target.id)
            raise SessionConflictException(details={"session_id": target.id})

        session = self._reload(target.id)
        self.dispatcher.dispatch(SessionEvent.MATCH_FOUND, session.id, session.participant_ids)
        return BookingResult(session=session)

    def _create(self, requester: ResolvedProfile, start_time: datetime, duration: int) -> BookingResult:
        self._ensure_no_duplicate(requester.id, start_time, duration)

        candidate = self._find_instant_match(requester, start_time, duration)
        if candidate is not None:
            if self._claim(candidate.id, requester.id):
                session = self._reload(candidate.id)
                self.logger.info(
                    "Instant match: %s joined %s at %s", requester.id, session.id, start_time
                )
                self.dispatcher.dispatch(
                    SessionEvent.MATCH_FOUND, session.id, session.participant_ids
                )
                return BookingResult(session=session, instant_match=True)
            self.logger.info(
                "Instant match on %s lost to a concurrent claim; creating a waiting session",
                candidate.id,
            )

        try:
            with self.transaction():
                session = self.session_repository.create(
                    user1_id=requester.id,
                    start_time=start_time,
                    duration=duration,
                    status=SessionStatus.WAITING.value,
                )
                self.booking_log.append(requester.id, session.id, BookingAction.BOOKED)
        except IntegrityError as exc:
            raise SessionConflictException(
                DUPLICATE_BOOKING_MESSAGE,
                details={"start_time": start_time.isoformat(), "duration": duration},
            ) from exc

        self.dispatcher.dispatch(SessionEvent.BOOKING_CONFIRMED, session.id, [requester.id])
        return BookingResult(session=session)

    def _find_instant_match(
        self, requester: ResolvedProfile, start_time: datetime, duration: int
    ) -> Optional[FocusSession]:
        """Oldest same-language waiting session at exactly this slot, if any."""
        candidates = self.session_repository.find_open_at(start_time, duration, requester.id)
        if not candidates:
            return None
        owners = self.profile_service.resolve_many(c.user1_id for c in candidates)
        for candidate in candidates:
            owner = owners.get(candidate.user1_id)
            if isinstance(owner, ResolvedProfile) and owner.language == requester.language:
                return candidate
        return None

    def _claim(self, session_id: str, claimant_id: str) -> bool:
        with self.transaction():
            claimed = self.session_repository.claim_waiting(session_id, claimant_id)
            if claimed:
                self.booking_log.append(claimant_id, session_id, BookingAction.BOOKED)
        prometheus_metrics.record_transition("claim", claimed)
        return claimed

    def _ensure_no_duplicate(self, user_id: str, start_time: datetime, duration: int) -> None:
        if self.session_repository.has_active_booking(user_id, start_time, duration):
            raise SessionConflictException(
                DUPLICATE_BOOKING_MESSAGE,
                details={"start_time": start_time.isoformat(), "duration": duration},
            )

    def _reload(self, session_id: str) -> FocusSession:
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        return session
