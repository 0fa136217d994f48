# backend/focuspair/services/orphan_session_sweeper.py
"""
Orphaned Session Sweeper

Removes active sessions that reference a profile the identity service no
longer knows. Such sessions can never be matched or attended: a waiting
orphan is deleted, a matched orphan is cancelled without a canceller and the
participant who still resolves is told. Both writes are conditional, so a
session that moved on since it was read is left untouched.
"""

from datetime import datetime
import logging
from typing import Optional, TypedDict

from sqlalchemy.orm import Session

from ..core.timezone_utils import utc_now
from ..models.session import SessionStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .notification_service import NotificationDispatcher, SessionEvent
from .profile_service import ProfileService, ResolvedProfile

logger = logging.getLogger(__name__)


class OrphanSweepResults(TypedDict):
    examined: int
    orphaned: int
    deleted: int
    cancelled: int
    skipped: int
    failed: int
    processed_at: str


class OrphanSessionSweeper(BaseService):
    SWEEP_NAME = "orphaned_sessions"

    def __init__(
        self,
        db: Session,
        session_repository: Optional[SessionRepository] = None,
        profile_service: Optional[ProfileService] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        super().__init__(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.profile_service = profile_service or ProfileService(db)
        self.dispatcher = dispatcher or NotificationDispatcher()

    @BaseService.measure_operation("sweep_orphaned_sessions")
    def run(self, now: Optional[datetime] = None) -> OrphanSweepResults:
        now = now or utc_now()
        results: OrphanSweepResults = {
            "examined": 0,
            "orphaned": 0,
            "deleted": 0,
            "cancelled": 0,
            "skipped": 0,
            "failed": 0,
            "processed_at": now.isoformat(),
        }

        active = self.session_repository.find_active()
        results["examined"] = len(active)
        profiles = self.profile_service.resolve_many(
            uid for session in active for uid in session.participant_ids
        )

        orphans = []
        for session in active:
            missing = [
                uid
                for uid in session.participant_ids
                if not isinstance(profiles.get(uid), ResolvedProfile)
            ]
            if missing:
                remaining = [uid for uid in session.participant_ids if uid not in missing]
                orphans.append((session.id, session.status, missing, remaining))
        results["orphaned"] = len(orphans)

        for session_id, session_status, missing, remaining in orphans:
            try:
                outcome = self._clean(session_id, session_status, now)
            except Exception as exc:
                self.logger.error("Failed to clean orphaned session %s: %s", session_id, exc)
                results["failed"] += 1
                continue

            if outcome is None:
                results["skipped"] += 1
                continue

            if outcome == "deleted":
                results["deleted"] += 1
            else:
                results["cancelled"] += 1
            self.logger.info(
                "Orphaned session %s %s; missing profiles: %s", session_id, outcome, missing
            )
            if outcome == "cancelled" and remaining:
                self.dispatcher.dispatch(SessionEvent.CANCELLED, session_id, remaining)

        for outcome in ("deleted", "cancelled", "skipped", "failed"):
            prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, outcome, results[outcome])
        return results

    def _clean(self, session_id: str, session_status: str, now: datetime) -> Optional[str]:
        """Delete a waiting orphan or cancel a matched one; None when the write lost."""
        if session_status == SessionStatus.WAITING.value:
            with self.transaction():
                deleted = self.session_repository.delete_if_unclaimed(session_id)
            prometheus_metrics.record_transition("orphan_delete", deleted)
            return "deleted" if deleted else None

        with self.transaction():
            cancelled = self.session_repository.cancel_if_active(session_id, None, now)
        prometheus_metrics.record_transition("orphan_cancel", cancelled)
        return "cancelled" if cancelled else None
