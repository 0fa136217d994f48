"""Celery tasks run synchronously against mocked sessions and services."""

from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import pytest

from focuspair.tasks.beat_schedule import get_beat_schedule
from focuspair.tasks.celery_app import celery_app
from focuspair.tasks.notification_tasks import send_session_notification
from focuspair.tasks.session_tasks import (
    reconcile_matches,
    send_session_reminders,
    sweep_no_shows,
    sweep_orphaned_sessions,
)

SESSION_ID = "01J0000000000000000000000A"


@pytest.fixture
def fake_db_session():
    db = MagicMock()

    @contextmanager
    def _scope():
        yield db

    return db, _scope


@pytest.mark.parametrize(
    "task, service_name, results",
    [
        (
            reconcile_matches,
            "MatchReconciler",
            {"examined": 2, "paired": 1, "lost_race": 0, "unresolved": 0, "failed": 0},
        ),
        (
            sweep_no_shows,
            "NoShowMonitor",
            {"processed": 1, "marked": 1, "penalized": 1, "skipped": 0, "failed": 0},
        ),
        (
            send_session_reminders,
            "ReminderService",
            {"processed": 1, "reminded": 1, "skipped": 0, "failed": 0},
        ),
        (
            sweep_orphaned_sessions,
            "OrphanSessionSweeper",
            {"examined": 3, "orphaned": 1, "deleted": 1, "cancelled": 0, "skipped": 0, "failed": 0},
        ),
    ],
)
def test_sweep_tasks_run_their_service(fake_db_session, task, service_name, results):
    db, scope = fake_db_session
    with patch("focuspair.tasks.session_tasks.get_db_session", scope), patch(
        f"focuspair.tasks.session_tasks.{service_name}"
    ) as service_cls:
        service_cls.return_value.run.return_value = results

        returned = task()

    service_cls.assert_called_once_with(db)
    assert returned == results


def test_beat_schedule_points_at_registered_tasks():
    schedule = get_beat_schedule()

    assert set(schedule) == {
        "reconcile-matches",
        "sweep-no-shows",
        "send-session-reminders",
        "sweep-orphaned-sessions",
    }
    for entry in schedule.values():
        assert entry["task"] in celery_app.tasks
        assert entry["options"]["queue"] == "sweeps"


class TestSendSessionNotification:
    def test_unknown_event_is_dropped(self):
        assert send_session_notification("party", SESSION_ID, "alice") == {
            "status": "skipped",
            "reason": "unknown_event",
        }

    def test_delivers_through_notification_service(self, fake_db_session):
        db, scope = fake_db_session
        with patch("focuspair.tasks.notification_tasks.get_db_session", scope), patch(
            "focuspair.tasks.notification_tasks.NotificationService"
        ) as service_cls:
            service_cls.return_value.deliver.return_value = True

            result = send_session_notification("reminder", SESSION_ID, "alice")

        assert result == {"status": "sent", "event": "reminder", "session_id": SESSION_ID}
        service_cls.return_value.deliver.assert_called_once()

    def test_missing_recipient_is_skipped(self, fake_db_session):
        _, scope = fake_db_session
        with patch("focuspair.tasks.notification_tasks.get_db_session", scope), patch(
            "focuspair.tasks.notification_tasks.NotificationService"
        ) as service_cls:
            service_cls.return_value.deliver.return_value = False

            result = send_session_notification("no_show", SESSION_ID, "alice")

        assert result["status"] == "skipped"

    def test_delivery_failure_is_retried(self, fake_db_session):
        _, scope = fake_db_session
        with patch("focuspair.tasks.notification_tasks.get_db_session", scope), patch(
            "focuspair.tasks.notification_tasks.NotificationService"
        ) as service_cls, patch.object(
            send_session_notification, "retry", side_effect=RuntimeError("retry scheduled")
        ) as retry:
            service_cls.return_value.deliver.side_effect = ConnectionError("smtp down")

            with pytest.raises(RuntimeError, match="retry scheduled"):
                send_session_notification("cancelled", SESSION_ID, "alice")

        assert isinstance(retry.call_args.kwargs["exc"], ConnectionError)
        assert retry.call_args.kwargs["countdown"] == 60
