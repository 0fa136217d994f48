"""ULID generation helper utilities."""

from typing import Optional

import ulid

from .constants import ROOM_TOKEN_PREFIX


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())


def parse_ulid(ulid_str: str) -> Optional[ulid.ULID]:
    """Parse and validate a ULID string."""
    try:
        return ulid.ULID.from_str(ulid_str)
    except (ValueError, TypeError, AttributeError):
        return None


def is_valid_ulid(ulid_str: str) -> bool:
    """Check if a string is a valid ULID."""
    return parse_ulid(ulid_str) is not None


def generate_room_token() -> str:
    """Opaque conferencing room identifier for a new session."""
    return f"{ROOM_TOKEN_PREFIX}_{ulid.ULID()}".lower()
