# backend/focuspair/tasks/notification_tasks.py
"""Celery task delivering one session notification to one recipient."""

from __future__ import annotations

from typing import Any, Dict

from celery.utils.log import get_task_logger

from ..database import get_db_session
from ..services.notification_service import NotificationService, SessionEvent
from .celery_app import typed_task

logger = get_task_logger(__name__)


@typed_task(
    bind=True,
    name="focuspair.tasks.notification_tasks.send_session_notification",
    queue="email",
    max_retries=3,
    default_retry_delay=60,
)
def send_session_notification(
    self: Any, event: str, session_id: str, recipient_id: str
) -> Dict[str, Any]:
    """
    Render and send the email for `event`.

    Unknown events are dropped. Provider failures are retried with backoff;
    the booking that triggered the notification is never affected.
    """
    try:
        session_event = SessionEvent(event)
    except ValueError:
        logger.error("Dropping notification with unknown event %r", event)
        return {"status": "skipped", "reason": "unknown_event"}

    try:
        with get_db_session() as db:
            sent = NotificationService(db).deliver(session_event, session_id, recipient_id)
    except Exception as exc:
        logger.warning(
            "Notification %s for session %s to %s failed: %s", event, session_id, recipient_id, exc
        )
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

    return {"status": "sent" if sent else "skipped", "event": event, "session_id": session_id}
