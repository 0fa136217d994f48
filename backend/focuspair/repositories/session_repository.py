# backend/focuspair/repositories/session_repository.py
"""
Session Repository for the FocusPair booking engine

Every state transition is a single conditional UPDATE or DELETE whose WHERE
clause restates the precondition. Methods return whether a row was affected;
callers treat False as a lost race, not as an error.
"""

from datetime import datetime
import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy import and_, delete, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..models.session import ACTIVE_STATUSES, FocusSession, SessionStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SessionRepository(BaseRepository[FocusSession]):
    """Data access for focus sessions."""

    def __init__(self, db: Session):
        super().__init__(db, FocusSession)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> FocusSession:
        """Create a session, exposing integrity errors for duplicate handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def _build_query(self) -> Query:
        """Base query that overwrites identity-map state with the current row values."""
        return self.db.query(FocusSession).populate_existing()

    # Conditional transitions

    def claim_waiting(self, session_id: str, claimant_id: str) -> bool:
        """waiting -> matched with claimant as user2, if still open and not self-owned."""
        stmt = (
            update(FocusSession)
            .where(
                FocusSession.id == session_id,
                FocusSession.status == SessionStatus.WAITING.value,
                FocusSession.user2_id.is_(None),
                FocusSession.user1_id != claimant_id,
            )
            .values(user2_id=claimant_id, status=SessionStatus.MATCHED.value)
        )
        return self._execute_write(stmt) == 1

    def delete_if_unclaimed(self, session_id: str) -> bool:
        """Delete a session only while it is still waiting with no partner."""
        stmt = delete(FocusSession).where(
            FocusSession.id == session_id,
            FocusSession.status == SessionStatus.WAITING.value,
            FocusSession.user2_id.is_(None),
        )
        return self._execute_write(stmt) == 1

    def mark_no_show_if_matched(self, session_id: str, cutoff: datetime) -> bool:
        """matched -> no_show, only past the grace cutoff and while someone is still absent."""
        stmt = (
            update(FocusSession)
            .where(
                FocusSession.id == session_id,
                FocusSession.status == SessionStatus.MATCHED.value,
                FocusSession.start_time < cutoff,
                or_(
                    FocusSession.user1_joined.is_(False),
                    FocusSession.user2_joined.is_(False),
                ),
            )
            .values(status=SessionStatus.NO_SHOW.value)
        )
        return self._execute_write(stmt) == 1

    def cancel_if_active(
        self, session_id: str, cancelled_by_id: Optional[str], now: datetime
    ) -> bool:
        """waiting|matched -> cancelled. cancelled_by_id is None for system cancellations."""
        stmt = (
            update(FocusSession)
            .where(
                FocusSession.id == session_id,
                FocusSession.status.in_(tuple(ACTIVE_STATUSES)),
            )
            .values(
                status=SessionStatus.CANCELLED.value,
                cancelled_at=now,
                cancelled_by_id=cancelled_by_id,
            )
        )
        return self._execute_write(stmt) == 1

    def set_joined(self, session_id: str, user_id: str) -> bool:
        """
        Raise the caller's own joined flag on a matched session.

        Two statements, one per participant column; at most one can match
        because user1_id <> user2_id.
        """
        for owner_column, flag in (
            (FocusSession.user1_id, "user1_joined"),
            (FocusSession.user2_id, "user2_joined"),
        ):
            stmt = (
                update(FocusSession)
                .where(
                    FocusSession.id == session_id,
                    FocusSession.status == SessionStatus.MATCHED.value,
                    owner_column == user_id,
                )
                .values({flag: True})
            )
            if self._execute_write(stmt) == 1:
                return True
        return False

    def complete_if_ready(self, session_id: str, now: datetime) -> bool:
        """matched -> completed, only once both participants have joined."""
        stmt = (
            update(FocusSession)
            .where(
                FocusSession.id == session_id,
                FocusSession.status == SessionStatus.MATCHED.value,
                FocusSession.user1_joined.is_(True),
                FocusSession.user2_joined.is_(True),
            )
            .values(status=SessionStatus.COMPLETED.value, completed_at=now)
        )
        return self._execute_write(stmt) == 1

    def mark_reminder_sent(self, session_id: str, now: datetime) -> bool:
        stmt = (
            update(FocusSession)
            .where(
                FocusSession.id == session_id,
                FocusSession.status == SessionStatus.MATCHED.value,
                FocusSession.reminder_sent_at.is_(None),
            )
            .values(reminder_sent_at=now)
        )
        return self._execute_write(stmt) == 1

    # Queries

    def has_active_booking(self, user_id: str, start_time: datetime, duration: int) -> bool:
        """Whether the user already holds a non-terminal session at this exact slot, on either side."""
        try:
            query = self._build_query().filter(
                FocusSession.start_time == start_time,
                FocusSession.duration == duration,
                FocusSession.status.in_(tuple(ACTIVE_STATUSES)),
                or_(FocusSession.user1_id == user_id, FocusSession.user2_id == user_id),
            )
            return query.first() is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking active booking for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to check active booking: {str(e)}")

    def find_open_at(
        self, start_time: datetime, duration: int, exclude_user_id: str
    ) -> List[FocusSession]:
        """Waiting, unclaimed sessions at an exact slot owned by someone else, oldest first."""
        query = (
            self._build_query()
            .filter(
                FocusSession.start_time == start_time,
                FocusSession.duration == duration,
                FocusSession.status == SessionStatus.WAITING.value,
                FocusSession.user2_id.is_(None),
                FocusSession.user1_id != exclude_user_id,
            )
            .order_by(FocusSession.created_at.asc(), FocusSession.id.asc())
        )
        return self._execute_query(query)

    def find_unmatched_waiting(self, now: datetime) -> List[FocusSession]:
        """All waiting, unclaimed sessions that have not started yet."""
        query = (
            self._build_query()
            .filter(
                FocusSession.status == SessionStatus.WAITING.value,
                FocusSession.user2_id.is_(None),
                FocusSession.start_time > now,
            )
            .order_by(
                FocusSession.start_time.asc(),
                FocusSession.duration.asc(),
                FocusSession.created_at.asc(),
                FocusSession.id.asc(),
            )
        )
        return self._execute_query(query)

    def find_active(self) -> List[FocusSession]:
        """Every waiting or matched session, oldest start first."""
        query = (
            self._build_query()
            .filter(FocusSession.status.in_(tuple(ACTIVE_STATUSES)))
            .order_by(FocusSession.start_time.asc(), FocusSession.id.asc())
        )
        return self._execute_query(query)

    def find_no_show_candidates(self, cutoff: datetime) -> List[FocusSession]:
        """Matched sessions that started before cutoff with at least one absent participant."""
        query = (
            self._build_query()
            .filter(
                FocusSession.status == SessionStatus.MATCHED.value,
                FocusSession.start_time < cutoff,
                or_(
                    FocusSession.user1_joined.is_(False),
                    FocusSession.user2_joined.is_(False),
                ),
            )
            .order_by(FocusSession.start_time.asc())
        )
        return self._execute_query(query)

    def find_reminder_candidates(self, now: datetime, horizon: datetime) -> List[FocusSession]:
        query = (
            self._build_query()
            .filter(
                FocusSession.status == SessionStatus.MATCHED.value,
                FocusSession.reminder_sent_at.is_(None),
                FocusSession.start_time > now,
                FocusSession.start_time <= horizon,
            )
            .order_by(FocusSession.start_time.asc())
        )
        return self._execute_query(query)

    def find_in_window(self, window_start: datetime, window_end: datetime) -> List[FocusSession]:
        """Every session, any status, starting in [window_start, window_end)."""
        query = (
            self._build_query()
            .filter(
                FocusSession.start_time >= window_start,
                FocusSession.start_time < window_end,
            )
            .order_by(FocusSession.start_time.asc(), FocusSession.created_at.asc())
        )
        return self._execute_query(query)

    def list_for_user(
        self,
        user_id: str,
        *,
        now: datetime,
        upcoming: bool,
        statuses: Optional[Sequence[str]] = None,
        limit: int = 50,
    ) -> List[FocusSession]:
        """Sessions the user participates in, upcoming ascending or past descending."""
        query = self._build_query().filter(
            or_(FocusSession.user1_id == user_id, FocusSession.user2_id == user_id)
        )
        if statuses:
            query = query.filter(FocusSession.status.in_(tuple(statuses)))
        if upcoming:
            query = query.filter(
                and_(
                    FocusSession.start_time >= now,
                    FocusSession.status.in_(tuple(ACTIVE_STATUSES)),
                )
            ).order_by(FocusSession.start_time.asc())
        else:
            query = query.filter(
                or_(
                    FocusSession.start_time < now,
                    FocusSession.status.notin_(tuple(ACTIVE_STATUSES)),
                )
            ).order_by(FocusSession.start_time.desc())
        return self._execute_query(query.limit(limit))
