# backend/focuspair/services/match_reconciler.py
"""
Match Reconciler

Periodic sweep that pairs waiting sessions which a user could have joined
but nobody did, typically two people who booked the same slot at the
same moment and both ended up creating a session.

Pairing merges the second session into the first: the first session is
claimed on behalf of the second session's owner, then the second session
is deleted. Both statements run inside one SAVEPOINT. If the delete finds
the second session already changed, the claim is rolled back as well, so
nobody is ever left holding two sessions for one slot.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
import logging
from typing import Dict, List, NamedTuple, Optional, Tuple, TypedDict

from sqlalchemy.orm import Session

from ..core.timezone_utils import utc_now
from ..models.booking_log import BookingAction
from ..models.session import FocusSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_log_repository import BookingLogRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .notification_service import NotificationDispatcher, SessionEvent
from .profile_service import ProfileService, ResolvedProfile

logger = logging.getLogger(__name__)

GroupKey = Tuple[datetime, int, str]


class _Candidate(NamedTuple):
    session_id: str
    owner_id: str
    created_at: datetime


class MatchSweepResults(TypedDict):
    examined: int
    paired: int
    lost_race: int
    unresolved: int
    failed: int
    processed_at: str


class MatchReconciler(BaseService):
    SWEEP_NAME = "match_sessions"

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

    @BaseService.measure_operation("reconcile_matches")
    def run(self, now: Optional[datetime] = None) -> MatchSweepResults:
        now = now or utc_now()
        results: MatchSweepResults = {
            "examined": 0,
            "paired": 0,
            "lost_race": 0,
            "unresolved": 0,
            "failed": 0,
            "processed_at": now.isoformat(),
        }

        waiting = self.session_repository.find_unmatched_waiting(now)
        results["examined"] = len(waiting)
        groups = self._group(waiting, results)

        for key, group in groups.items():
            queue = sorted(group, key=lambda c: (c.created_at, c.session_id))
            while len(queue) >= 2:
                survivor, merged = queue.pop(0), queue.pop(0)
                survivor_id, merged_id = survivor.session_id, merged.session_id
                survivor_owner, merged_owner = survivor.owner_id, merged.owner_id
                try:
                    paired = self._pair(survivor_id, merged_id, merged_owner)
                except Exception as exc:
                    self.logger.error(
                        "Failed to pair sessions %s and %s: %s", survivor_id, merged_id, exc
                    )
                    results["failed"] += 1
                    continue

                if not paired:
                    results["lost_race"] += 1
                    continue

                results["paired"] += 1
                self.logger.info(
                    "Paired %s into %s (%s, %s min, %s)",
                    merged_id,
                    survivor_id,
                    key[0].isoformat(),
                    key[1],
                    key[2],
                )
                self.dispatcher.dispatch(
                    SessionEvent.MATCH_FOUND, survivor_id, [survivor_owner, merged_owner]
                )

        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "paired", results["paired"])
        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "lost_race", results["lost_race"])
        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "unresolved", results["unresolved"])
        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "failed", results["failed"])
        return results

    def _group(
        self, waiting: List[FocusSession], results: MatchSweepResults
    ) -> Dict[GroupKey, List[_Candidate]]:
        """Bucket by (start_time, duration, owner language); unresolved owners sit out."""
        owners = self.profile_service.resolve_many(s.user1_id for s in waiting)
        groups: Dict[GroupKey, List[_Candidate]] = defaultdict(list)
        for session in waiting:
            owner = owners.get(session.user1_id)
            if not isinstance(owner, ResolvedProfile):
                results["unresolved"] += 1
                continue
            groups[(session.start_time, session.duration, owner.language)].append(
                _Candidate(session.id, session.user1_id, session.created_at)
            )
        return groups

    def _pair(self, survivor_id: str, merged_id: str, merged_owner_id: str) -> bool:
        """Claim survivor for merged's owner and delete merged, atomically or not at all."""
        with self.transaction():
            savepoint = self.db.begin_nested()
            if not self.session_repository.claim_waiting(survivor_id, merged_owner_id):
                savepoint.rollback()
                prometheus_metrics.record_transition("reconcile_claim", False)
                return False
            if not self.session_repository.delete_if_unclaimed(merged_id):
                savepoint.rollback()
                prometheus_metrics.record_transition("reconcile_delete", False)
                return False
            savepoint.commit()
            self.booking_log.append(merged_owner_id, survivor_id, BookingAction.BOOKED)
        prometheus_metrics.record_transition("reconcile", True)
        return True
