# backend/focuspair/services/reminder_service.py
"""Pre-session reminders for matched sessions."""

from datetime import datetime, timedelta
import logging
from typing import Optional, TypedDict

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.timezone_utils import utc_now
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .notification_service import NotificationDispatcher, SessionEvent

logger = logging.getLogger(__name__)


class ReminderSweepResults(TypedDict):
    processed: int
    reminded: int
    skipped: int
    failed: int
    processed_at: str


class ReminderService(BaseService):
    """
    Sends one reminder per matched session shortly before it starts.

    reminder_sent_at is claimed with a conditional UPDATE before anything is
    enqueued, so overlapping sweeps never remind twice.
    """

    SWEEP_NAME = "reminders"

    def __init__(
        self,
        db: Session,
        session_repository: Optional[SessionRepository] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        lead_minutes: Optional[int] = None,
    ):
        super().__init__(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.lead = timedelta(minutes=lead_minutes or settings.reminder_lead_minutes)

    @BaseService.measure_operation("send_session_reminders")
    def run(self, now: Optional[datetime] = None) -> ReminderSweepResults:
        now = now or utc_now()
        results: ReminderSweepResults = {
            "processed": 0,
            "reminded": 0,
            "skipped": 0,
            "failed": 0,
            "processed_at": now.isoformat(),
        }

        candidates = [
            (s.id, s.participant_ids)
            for s in self.session_repository.find_reminder_candidates(now, now + self.lead)
        ]
        for session_id, participant_ids in candidates:
            results["processed"] += 1
            try:
                with self.transaction():
                    claimed = self.session_repository.mark_reminder_sent(session_id, now)
            except Exception as exc:
                self.logger.error("Failed to claim reminder for session %s: %s", session_id, exc)
                results["failed"] += 1
                continue

            if not claimed:
                results["skipped"] += 1
                continue

            results["reminded"] += 1
            self.dispatcher.dispatch(SessionEvent.REMINDER, session_id, participant_ids)

        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "reminded", results["reminded"])
        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "skipped", results["skipped"])
        prometheus_metrics.record_sweep_outcome(self.SWEEP_NAME, "failed", results["failed"])
        return results
