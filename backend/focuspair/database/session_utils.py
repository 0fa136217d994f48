"""
Helpers for working with SQLAlchemy results in a dialect-agnostic way.
"""

from __future__ import annotations

from typing import Any


def affected_rows(result: Any) -> int:
    """Row count of an UPDATE/DELETE result; drivers may report None or -1."""
    count = getattr(result, "rowcount", None)
    if count is None or count < 0:
        return 0
    return int(count)
