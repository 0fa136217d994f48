# backend/focuspair/services/no_show_monitor.py
"""
No-Show Monitor

Matched sessions whose start passed more than NO_SHOW_GRACE_PERIOD ago
with at least one participant still absent become `no_show`. Penalties are
applied only by the sweep whose conditional UPDATE actually flipped the
status, so overlapping or repeated sweeps count each no-show once.
"""

from datetime import datetime
import logging
from typing import List, Optional, TypedDict

from sqlalchemy.orm import Session

from ..core.constants import NO_SHOW_GRACE_PERIOD
from ..core.timezone_utils import utc_now
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.profile_repository import ProfileRepository
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .notification_service import NotificationDispatcher, SessionEvent

logger = logging.getLogger(__name__)


class NoShowSweepResults(TypedDict):
    processed: int
    marked: int
    penalized: int
    skipped: int
    failed: int
    processed_at: str


class NoShowMonitor(BaseService):
    SWEEP_NAME = "no_shows"

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

    @BaseService.measure_operation("sweep_no_shows")
    def run(self, now: Optional[datetime] = None) -> NoShowSweepResults:
        now = now or utc_now()
        cutoff = now - NO_SHOW_GRACE_PERIOD
        results: NoShowSweepResults = {
            "processed": 0,
            "marked": 0,
            "penalized": 0,
            "skipped": 0,
            "failed": 0,
            "processed_at": now.isoformat(),
        }

        candidate_ids = [s.id for s in self.session_repository.find_no_show_candidates(cutoff)]
        for session_id in candidate_ids:
            results["processed"] += 1
            try:
                absentees = self._mark(session_id, cutoff)
            except Exception as exc:
                self.logger.error("Failed to process no-show for session %s: %s", session_id, exc)
                results["failed"] += 1
                continue

            if absentees is None:
                results["skipped"] += 1
                continue

            results["marked"] += 1
            results["penalized"] += len(absentees)
            self.logger.info("Session %s marked no_show; absent: %s", session_id, absentees)
            self.dispatcher.dispatch(SessionEvent.NO_SHOW, session_id, absentees)

        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "marked", results["marked"])
        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "skipped", results["skipped"])
        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "failed", results["failed"])
        return results

    def _mark(self, session_id: str, cutoff: datetime) -> Optional[List[str]]:
        """
        Flip one session to no_show and penalize whoever was absent.

        Returns None when the conditional write lost (already terminal, or
        both participants joined in the meantime). The joined flags are read
        after the flip: from then on no join can change them.
        """
        with self.transaction():
            if not self.session_repository.mark_no_show_if_matched(session_id, cutoff):
                prometheus_metrics.record_transition("no_show", False)
                return None

            session = self.session_repository.get_by_id(session_id)
            absentees: List[str] = []
            if session is not None:
                for user_id, joined in (
                    (session.user1_id, session.user1_joined),
                    (session.user2_id, session.user2_joined),
                ):
                    if user_id and not joined:
                        self.profile_repository.increment_no_show(user_id)
                        absentees.append(user_id)
        prometheus_metrics.record_transition("no_show", True)
        return absentees
