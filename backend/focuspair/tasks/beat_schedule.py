# backend/focuspair/tasks/beat_schedule.py
"""
Celery Beat schedule for the booking sweeps.

Intervals come from settings so the same values drive the Sentry cron
monitors in monitoring/sentry_crons.py.
"""

from datetime import timedelta
from typing import Any, Dict

from ..core.config import settings


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    return {
        "reconcile-matches": {
            "task": "focuspair.tasks.session_tasks.reconcile_matches",
            "schedule": timedelta(seconds=settings.match_sweep_interval_seconds),
            "options": {"queue": "sweeps", "expires": settings.match_sweep_interval_seconds},
        },
        "sweep-no-shows": {
            "task": "focuspair.tasks.session_tasks.sweep_no_shows",
            "schedule": timedelta(seconds=settings.no_show_sweep_interval_seconds),
            "options": {"queue": "sweeps", "expires": settings.no_show_sweep_interval_seconds},
        },
        "send-session-reminders": {
            "task": "focuspair.tasks.session_tasks.send_session_reminders",
            "schedule": timedelta(seconds=settings.reminder_sweep_interval_seconds),
            "options": {"queue": "sweeps", "expires": settings.reminder_sweep_interval_seconds},
        },
        "sweep-orphaned-sessions": {
            "task": "focuspair.tasks.session_tasks.sweep_orphaned_sessions",
            "schedule": timedelta(seconds=settings.orphan_sweep_interval_seconds),
            "options": {"queue": "sweeps", "expires": settings.orphan_sweep_interval_seconds},
        },
    }
