# backend/focuspair/services/session_service.py
"""
Participant-facing session operations: joining the room, completion,
and reading one's own sessions.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import JOIN_WINDOW_OPENS_BEFORE
from ..core.exceptions import (
    JoinWindowNotOpenException,
    NotParticipantException,
    SessionAlreadyTerminalException,
    SessionConflictException,
    SessionNotFoundException,
)
from ..core.timezone_utils import utc_now
from ..models.session import FocusSession, SessionStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.profile_repository import ProfileRepository
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .notification_service import NotificationDispatcher, SessionEvent

logger = logging.getLogger(__name__)


class SessionListKind(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"


@dataclass(frozen=True)
class JoinResult:
    session: FocusSession
    room_token: str


class SessionService(BaseService):
    def __init__(
        self,
        db: Session,
        session_repository: Optional[SessionRepository] = None,
        profile_repository: Optional[ProfileRepository] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        super().__init__(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.profile_repository = (
            profile_repository or RepositoryFactory.create_profile_repository(db)
        )
        self.dispatcher = dispatcher or NotificationDispatcher()

    def get_for_participant(self, session_id: str, user_id: str, action: str = "view") -> FocusSession:
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        if not session.is_participant(user_id):
            raise NotParticipantException(session_id, action)
        return session

    @BaseService.measure_operation("list_sessions")
    def list_sessions(
        self, user_id: str, kind: SessionListKind = SessionListKind.UPCOMING, limit: int = 50
    ) -> List[FocusSession]:
        return self.session_repository.list_for_user(
            user_id, now=utc_now(), upcoming=kind is SessionListKind.UPCOMING, limit=limit
        )

    @BaseService.measure_operation("mark_joined")
    def mark_joined(self, session_id: str, user_id: str) -> JoinResult:
        """
        Record that the caller entered the room and hand back the room token.

        The window opens JOIN_WINDOW_OPENS_BEFORE ahead of the start. Joining
        again is harmless; the flag only ever goes from false to true.

        Raises:
            SessionNotFoundException, NotParticipantException,
            JoinWindowNotOpenException, SessionConflictException
        """
        session = self.get_for_participant(session_id, user_id, "join")
        self._require_matched(session)

        opens_at = session.start_time - JOIN_WINDOW_OPENS_BEFORE
        if utc_now() < opens_at:
            raise JoinWindowNotOpenException(opens_at)

        with self.transaction():
            joined = self.session_repository.set_joined(session_id, user_id)
        prometheus_metrics.record_transition("join", joined)

        session = self._reload(session_id)
        if not joined:
            self._require_matched(session)
            raise SessionConflictException(details={"session_id": session_id})

        self.log_operation("mark_joined", session_id=session_id, user_id=user_id)
        return JoinResult(session=session, room_token=session.room_token)

    @BaseService.measure_operation("complete_session")
    def complete(self, session_id: str, user_id: str) -> FocusSession:
        """
        Conferencing completion signal: matched -> completed.

        Both participants must have joined. Each participant's completed
        session counter goes up exactly once, in the same transaction as the
        status change.
        """
        session = self.get_for_participant(session_id, user_id, "complete")
        self._require_matched(session, "Session has not been matched yet")
        if not (session.user1_joined and session.user2_joined):
            raise SessionConflictException(
                "Both participants must join before the session can be completed",
                details={"session_id": session_id},
            )

        with self.transaction():
            completed = self.session_repository.complete_if_ready(session_id, utc_now())
            if completed:
                self.profile_repository.increment_total_sessions(session.participant_ids)
        prometheus_metrics.record_transition("complete", completed)

        session = self._reload(session_id)
        if not completed:
            self._require_matched(session, "Session has not been matched yet")
            raise SessionConflictException(details={"session_id": session_id})

        self.dispatcher.dispatch(SessionEvent.COMPLETED, session.id, session.participant_ids)
        return session

    @staticmethod
    def _require_matched(
        session: FocusSession, message: str = "Session is not ready to join"
    ) -> None:
        if session.is_terminal:
            raise SessionAlreadyTerminalException(session.id, session.status)
        if session.status != SessionStatus.MATCHED.value:
            raise SessionConflictException(message, details={"session_id": session.id})

    def _reload(self, session_id: str) -> FocusSession:
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        return session
