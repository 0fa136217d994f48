# backend/focuspair/services/email.py
"""
Email Service for FocusPair

Sends transactional email through Resend, or writes it to the log when the
console provider is configured (local development and tests).
"""

import logging
import re
from typing import Any, Dict, Optional

import resend
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from .base import BaseService

logger = logging.getLogger(__name__)


class EmailService(BaseService):
    """
    Service for sending emails.

    The provider is chosen from settings.email_provider; the resend provider
    requires RESEND_API_KEY.
    """

    def __init__(self, db: Session, provider: Optional[str] = None):
        super().__init__(db)
        self.provider = provider or settings.email_provider
        self.from_email = settings.from_email

        if self.provider == "resend":
            api_key = settings.resend_api_key
            if not api_key:
                raise ServiceException("Resend API key not configured")
            resend.api_key = api_key

    def _html_to_text(self, html_content: str) -> str:
        """Convert HTML content to plain text for better deliverability"""
        text = re.sub(r"<[^>]+>", "", html_content)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send a single email.

        Returns:
            Provider response (Resend's payload, or a stub for the console provider)

        Raises:
            ServiceException: If the provider rejects the message
        """
        if not text_content:
            text_content = self._html_to_text(html_content)

        if self.provider == "console":
            self.logger.info(
                "[console email] to=%s subject=%r\n%s", to_email, subject, text_content
            )
            return {"id": "console"}

        email_data = {
            "from": self.from_email,
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content,
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            self.logger.error(f"Failed to send email to {to_email}: {str(e)}")
            raise ServiceException(f"Email sending failed: {str(e)}") from e

        self.log_operation("email_sent", to_email=to_email, subject=subject)
        return dict(response)
