"""
Centralized email subject builders.

Keep subjects in code (not templates) for versioning, logging,
and future i18n. Bodies remain in Jinja templates.
"""

from ..core.constants import BRAND_NAME


class EmailSubject:
    """Utility class with static builders for email subjects."""

    @staticmethod
    def booking_confirmed() -> str:
        return f"Your {BRAND_NAME} session is booked"

    @staticmethod
    def match_found(partner_name: str | None = None) -> str:
        if partner_name and partner_name.strip():
            return f"You're matched with {partner_name.strip()}!"
        return "You've got a focus partner!"

    @staticmethod
    def reminder(lead_minutes: int) -> str:
        return f"{BRAND_NAME} session reminder - Starting in {lead_minutes} minutes"

    @staticmethod
    def no_show() -> str:
        return "You missed your focus session"

    @staticmethod
    def cancelled() -> str:
        return "Your focus session was cancelled"

    @staticmethod
    def completed() -> str:
        return "Session completed! Great work"
