# backend/focuspair/core/constants.py
"""
Business constants for the session booking and matching engine.

These are platform rules rather than deployment settings, so they live here
instead of in Settings and are never overridden per call.
"""

from datetime import time, timedelta
from typing import Final, Tuple

BRAND_NAME: Final = "FocusPair"

# Daily booking grid, local to the requester's timezone (inclusive bounds)
SLOT_GRID_START: Final = time(6, 0)
SLOT_GRID_END: Final = time(23, 30)
SLOT_INTERVAL: Final = timedelta(minutes=30)

# Session lengths offered to users, in minutes
SESSION_DURATIONS: Final[Tuple[int, ...]] = (25, 50)

# Lifecycle windows
NO_SHOW_GRACE_PERIOD: Final = timedelta(minutes=5)
CANCELLATION_WINDOW: Final = timedelta(hours=1)
JOIN_WINDOW_OPENS_BEFORE: Final = timedelta(minutes=5)

# Conferencing room tokens are prefixed so they are recognisable in logs
ROOM_TOKEN_PREFIX: Final = "focuspair"

DEFAULT_TIMEZONE: Final = "Europe/Amsterdam"
