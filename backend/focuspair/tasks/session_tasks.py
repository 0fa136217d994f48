# backend/focuspair/tasks/session_tasks.py
"""
Periodic booking sweeps.

Each task opens its own database session. A sweep never raises for a
single bad record; only infrastructure failures propagate to Celery.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..database import get_db_session
from ..monitoring.sentry_crons import monitor_if_configured
from ..services.match_reconciler import MatchReconciler
from ..services.no_show_monitor import NoShowMonitor
from ..services.orphan_session_sweeper import OrphanSessionSweeper
from ..services.reminder_service import ReminderService
from .celery_app import typed_task

logger = logging.getLogger(__name__)


@typed_task(name="focuspair.tasks.session_tasks.reconcile_matches", max_retries=0)
@monitor_if_configured("reconcile-matches")
def reconcile_matches() -> Dict[str, Any]:
    """Pair waiting sessions that share start time, duration and language."""
    with get_db_session() as db:
        results = MatchReconciler(db).run()
    logger.info(
        "Match sweep: paired=%s lost_race=%s failed=%s",
        results["paired"],
        results["lost_race"],
        results["failed"],
    )
    return dict(results)


@typed_task(name="focuspair.tasks.session_tasks.sweep_no_shows", max_retries=0)
@monitor_if_configured("sweep-no-shows")
def sweep_no_shows() -> Dict[str, Any]:
    """Mark matched sessions nobody fully attended as no_show."""
    with get_db_session() as db:
        results = NoShowMonitor(db).run()
    logger.info(
        "No-show sweep: marked=%s penalized=%s failed=%s",
        results["marked"],
        results["penalized"],
        results["failed"],
    )
    return dict(results)


@typed_task(name="focuspair.tasks.session_tasks.send_session_reminders", max_retries=0)
@monitor_if_configured("send-session-reminders")
def send_session_reminders() -> Dict[str, Any]:
    with get_db_session() as db:
        results = ReminderService(db).run()
    logger.info("Reminder sweep: reminded=%s failed=%s", results["reminded"], results["failed"])
    return dict(results)


@typed_task(name="focuspair.tasks.session_tasks.sweep_orphaned_sessions", max_retries=0)
@monitor_if_configured("sweep-orphaned-sessions")
def sweep_orphaned_sessions() -> Dict[str, Any]:
    """Clean up active sessions whose participant profiles no longer exist."""
    with get_db_session() as db:
        results = OrphanSessionSweeper(db).run()
    logger.info(
        "Orphan sweep: deleted=%s cancelled=%s failed=%s",
        results["deleted"],
        results["cancelled"],
        results["failed"],
    )
    return dict(results)
