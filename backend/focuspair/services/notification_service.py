# backend/focuspair/services/notification_service.py
"""
Session notifications.

NotificationDispatcher runs in the request or sweep process and only
enqueues Celery tasks once the owning transaction has committed.
NotificationService runs inside the worker: it reloads the session and the
recipient, renders the email and sends it. A failure on either side is
logged and never reaches the booking that triggered it.
"""

from enum import Enum
import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.timezone_utils import to_local
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .email import EmailService
from .email_subjects import EmailSubject
from .template_service import TemplateService

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    BOOKING_CONFIRMED = "booking_confirmed"
    MATCH_FOUND = "match_found"
    REMINDER = "reminder"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


_TEMPLATES: Dict[SessionEvent, str] = {
    event: f"email/session/{event.value}.html" for event in SessionEvent
}


class NotificationDispatcher:
    """Enqueues one delivery task per recipient."""

    def dispatch(
        self, event: SessionEvent, session_id: str, recipient_ids: Iterable[Optional[str]]
    ) -> int:
        queued = 0
        for recipient_id in recipient_ids:
            if recipient_id and self._enqueue(event, session_id, recipient_id):
                queued += 1
        return queued

    def _enqueue(self, event: SessionEvent, session_id: str, recipient_id: str) -> bool:
        from ..tasks.notification_tasks import send_session_notification

        try:
            send_session_notification.delay(event.value, session_id, recipient_id)
        except Exception as exc:
            logger.warning(
                "Failed to enqueue %s notification for session %s user %s: %s",
                event.value,
                session_id,
                recipient_id,
                exc,
            )
            prometheus_metrics.record_notification_enqueued(event.value, "error")
            return False
        prometheus_metrics.record_notification_enqueued(event.value, "success")
        return True


class NotificationService(BaseService):
    """Builds and sends the email for a single session event."""

    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
        template_service: Optional[TemplateService] = None,
    ):
        super().__init__(db)
        self.session_repository = RepositoryFactory.create_session_repository(db)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.email_service = email_service or EmailService(db)
        self.template_service = template_service or TemplateService()

    @BaseService.measure_operation("deliver_session_notification")
    def deliver(self, event: SessionEvent, session_id: str, recipient_id: str) -> bool:
        """
        Send one notification email.

        Returns:
            False when the session or recipient no longer resolves
        """
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            self.logger.info("Skipping %s notification: session %s is gone", event.value, session_id)
            return False

        profiles = self.profile_repository.get_many(session.participant_ids + (recipient_id,))
        recipient = profiles.get(recipient_id)
        if recipient is None:
            self.logger.info("Skipping %s notification: no profile for %s", event.value, recipient_id)
            return False

        partner_id = session.partner_of(recipient_id)
        partner = profiles.get(partner_id) if partner_id else None
        partner_name = partner.first_name if partner else None

        context: Dict[str, Any] = {
            "subject": self._subject_for(event, partner_name),
            "first_name": recipient.first_name,
            "language": recipient.language,
            "partner_name": partner_name,
            "duration": session.duration,
            "start_local": to_local(session.start_time, recipient.timezone),
            "total_sessions": recipient.total_sessions,
            "session_url": f"{settings.frontend_url}/session/{session.id}",
            "book_url": f"{settings.frontend_url}/book",
        }
        html = self.template_service.render_template(_TEMPLATES[event], context)
        self.email_service.send_email(
            to_email=recipient.email, subject=context["subject"], html_content=html
        )
        return True

    @staticmethod
    def _subject_for(event: SessionEvent, partner_name: Optional[str]) -> str:
        if event is SessionEvent.BOOKING_CONFIRMED:
            return EmailSubject.booking_confirmed()
        if event is SessionEvent.MATCH_FOUND:
            return EmailSubject.match_found(partner_name)
        if event is SessionEvent.REMINDER:
            return EmailSubject.reminder(settings.reminder_lead_minutes)
        if event is SessionEvent.NO_SHOW:
            return EmailSubject.no_show()
        if event is SessionEvent.CANCELLED:
            return EmailSubject.cancelled()
        return EmailSubject.completed()
