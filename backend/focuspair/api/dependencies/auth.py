# backend/focuspair/api/dependencies/auth.py
"""
Authentication dependencies.

Participants authenticate with a bearer JWT; the scheduler that triggers
sweeps authenticates with the shared CRON_SECRET.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ...auth import get_current_user_id
from ...core.config import settings

logger = logging.getLogger(__name__)


async def get_current_participant_id(user_id: str = Depends(get_current_user_id)) -> str:
    return user_id


def _bearer_value(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value:
        return None
    return value.strip()


async def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Reject sweep calls that do not present `Authorization: Bearer <CRON_SECRET>`."""
    expected = settings.cron_secret.get_secret_value()
    presented = _bearer_value(authorization)
    if (
        not expected
        or presented is None
        or not hmac.compare_digest(presented.encode(), expected.encode())
    ):
        logger.warning("Rejected internal sweep call: bad or missing cron secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Unauthorized", "code": "CRON_UNAUTHORIZED"},
        )
