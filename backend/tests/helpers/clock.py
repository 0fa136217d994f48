"""Time helpers shared by the test suite."""

from datetime import datetime, timedelta, timezone

# Fixed reference instant for tests that patch the service clocks
FIXED_NOW = datetime(2030, 1, 14, 12, 0, tzinfo=timezone.utc)


def future_slot(days: int = 2, hour: int = 15, minute: int = 0) -> datetime:
    """A grid-aligned UTC instant `days` from the real current time."""
    base = datetime.now(timezone.utc) + timedelta(days=days)
    return base.replace(hour=hour, minute=minute, second=0, microsecond=0)
