# backend/focuspair/services/profile_service.py
"""
Profile resolution and booking eligibility.

Profiles are owned by the identity service; here they are only read. A
lookup either yields a ResolvedProfile or an explicit Unresolved value, so
callers can never mistake a missing profile for an empty one.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Dict, Iterable, Optional, Union

from sqlalchemy.orm import Session

from ..core.exceptions import IneligibleException
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.profile import ParticipantProfile, SubscriptionStatus
from ..repositories.factory import RepositoryFactory
from ..repositories.profile_repository import ProfileRepository
from .base import BaseService

logger = logging.getLogger(__name__)

REASON_BANNED = "banned"
REASON_SUBSCRIPTION_REQUIRED = "subscription_required"
REASON_PROFILE_UNAVAILABLE = "profile_unavailable"


@dataclass(frozen=True)
class ResolvedProfile:
    id: str
    first_name: str
    email: str
    language: str
    timezone: str
    subscription_status: str
    trial_ends_at: Optional[datetime]
    is_banned: bool

    @classmethod
    def from_model(cls, profile: ParticipantProfile) -> "ResolvedProfile":
        return cls(
            id=profile.id,
            first_name=profile.first_name,
            email=profile.email,
            language=profile.language,
            timezone=profile.timezone,
            subscription_status=profile.subscription_status,
            trial_ends_at=profile.trial_ends_at,
            is_banned=bool(profile.is_banned),
        )


@dataclass(frozen=True)
class Unresolved:
    user_id: str


ProfileLookup = Union[ResolvedProfile, Unresolved]


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reason: Optional[str] = None


def evaluate_eligibility(profile: ResolvedProfile, now: Optional[datetime] = None) -> Eligibility:
    """Not banned, and either subscribed or inside an unexpired trial."""
    if profile.is_banned:
        return Eligibility(False, REASON_BANNED)

    if profile.subscription_status == SubscriptionStatus.ACTIVE.value:
        return Eligibility(True)

    if profile.subscription_status == SubscriptionStatus.TRIAL.value and profile.trial_ends_at:
        current = now or utc_now()
        if ensure_utc(profile.trial_ends_at) > current:
            return Eligibility(True)

    return Eligibility(False, REASON_SUBSCRIPTION_REQUIRED)


class ProfileService(BaseService):
    """Read-side access to participant profiles."""

    def __init__(self, db: Session, profile_repository: Optional[ProfileRepository] = None):
        super().__init__(db)
        self.repository = profile_repository or RepositoryFactory.create_profile_repository(db)

    def resolve(self, user_id: str) -> ProfileLookup:
        profile = self.repository.get_by_id(user_id)
        if profile is None:
            return Unresolved(user_id)
        return ResolvedProfile.from_model(profile)

    def resolve_many(self, user_ids: Iterable[str]) -> Dict[str, ProfileLookup]:
        ids = [uid for uid in user_ids if uid]
        found = self.repository.get_many(ids)
        return {
            uid: ResolvedProfile.from_model(found[uid]) if uid in found else Unresolved(uid)
            for uid in ids
        }

    def require_eligible(self, user_id: str, now: Optional[datetime] = None) -> ResolvedProfile:
        """
        Resolve the requester and enforce booking eligibility.

        Raises:
            IneligibleException: If the profile is missing, banned, or unpaid
        """
        lookup = self.resolve(user_id)
        if isinstance(lookup, Unresolved):
            raise IneligibleException(
                REASON_PROFILE_UNAVAILABLE, "Your profile could not be loaded"
            )

        verdict = evaluate_eligibility(lookup, now)
        if not verdict.eligible:
            message = (
                "Your account is suspended from booking sessions"
                if verdict.reason == REASON_BANNED
                else "An active subscription or trial is required to book sessions"
            )
            self.logger.info("Booking refused for %s: %s", user_id, verdict.reason)
            raise IneligibleException(verdict.reason or REASON_SUBSCRIPTION_REQUIRED, message)
        return lookup
