# backend/focuspair/services/slot_availability_service.py
"""
Slot Availability Resolver

Lays the requester's local half-hour grid over the session table and tags
each slot as available, waiting (bookable by joining someone) or
unavailable. The result is a snapshot: rows are read once when resolve()
is called and every iteration replays the same answer.
"""

from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import logging
from typing import Dict, Iterator, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.constants import SLOT_INTERVAL
from ..core.exceptions import IneligibleException, InvalidTimeException
from ..core.timezone_utils import grid_window, slot_grid, to_local, utc_now
from ..models.session import FocusSession, SessionStatus
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService
from .profile_service import (
    REASON_PROFILE_UNAVAILABLE,
    ProfileLookup,
    ProfileService,
    ResolvedProfile,
)

logger = logging.getLogger(__name__)


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    WAITING = "waiting"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class WaitingUser:
    first_name: str
    duration: int


@dataclass(frozen=True)
class SlotDescriptor:
    start_time: datetime
    local_time: str
    status: SlotStatus
    session_id: Optional[str] = None
    waiting_user: Optional[WaitingUser] = None

    @property
    def available(self) -> bool:
        return self.status is not SlotStatus.UNAVAILABLE


class SlotSequence:
    """
    Finite, restartable sequence of 36 slot descriptors.

    Each call to iter() walks the same snapshot from the first slot, so a
    consumer may stop early and start over without touching the database.
    """

    def __init__(
        self,
        requester: ResolvedProfile,
        grid: Sequence[datetime],
        sessions: Sequence[FocusSession],
        owners: Dict[str, ProfileLookup],
        now: datetime,
    ):
        self.requester = requester
        self.now = now
        self._grid = list(grid)
        self._owners = owners
        self._buckets: List[List[FocusSession]] = [[] for _ in self._grid]
        for session in sessions:
            index = bisect_right(self._grid, session.start_time) - 1
            if index < 0 or session.start_time >= self._grid[index] + SLOT_INTERVAL:
                continue
            self._buckets[index].append(session)

    def __len__(self) -> int:
        return len(self._grid)

    def __iter__(self) -> Iterator[SlotDescriptor]:
        for instant, bucket in zip(self._grid, self._buckets):
            yield self._describe(instant, bucket)

    def _describe(self, instant: datetime, bucket: Sequence[FocusSession]) -> SlotDescriptor:
        local_time = to_local(instant, self.requester.timezone).strftime("%H:%M")
        unavailable = SlotDescriptor(instant, local_time, SlotStatus.UNAVAILABLE)

        if instant <= self.now:
            return unavailable

        requester_id = self.requester.id
        if any(s.is_participant(requester_id) and not s.is_terminal for s in bucket):
            return unavailable

        for session in sorted(bucket, key=lambda s: (s.created_at, s.id)):
            if (
                session.status != SessionStatus.WAITING.value
                or session.user2_id is not None
                or session.user1_id == requester_id
                or session.start_time <= self.now
            ):
                continue
            owner = self._owners.get(session.user1_id)
            if not isinstance(owner, ResolvedProfile):
                continue
            if owner.language != self.requester.language:
                continue
            return SlotDescriptor(
                start_time=session.start_time,
                local_time=to_local(session.start_time, self.requester.timezone).strftime("%H:%M"),
                status=SlotStatus.WAITING,
                session_id=session.id,
                waiting_user=WaitingUser(first_name=owner.first_name, duration=session.duration),
            )

        if bucket:
            return unavailable
        return SlotDescriptor(instant, local_time, SlotStatus.AVAILABLE)


class SlotAvailabilityService(BaseService):
    """Computes bookable slots for a requester's local calendar day."""

    def __init__(
        self,
        db: Session,
        session_repository: Optional[SessionRepository] = None,
        profile_service: Optional[ProfileService] = None,
    ):
        super().__init__(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.profile_service = profile_service or ProfileService(db)

    @BaseService.measure_operation("resolve_slots")
    def resolve(self, day: date, requester_id: str) -> SlotSequence:
        """
        Slots for `day` in the requester's timezone.

        Raises:
            InvalidTimeException: If `day` is before the requester's today
            IneligibleException: If the requester's profile cannot be resolved
        """
        requester = self.profile_service.resolve(requester_id)
        if not isinstance(requester, ResolvedProfile):
            raise IneligibleException(REASON_PROFILE_UNAVAILABLE, "Your profile could not be loaded")

        now = utc_now()
        if day < to_local(now, requester.timezone).date():
            raise InvalidTimeException("Cannot get slots for past dates")

        window_start, window_end = grid_window(day, requester.timezone)
        sessions = self.session_repository.find_in_window(window_start, window_end)

        waiting_owner_ids = {s.user1_id for s in sessions if s.status == SessionStatus.WAITING.value}
        owners = self.profile_service.resolve_many(waiting_owner_ids)

        return SlotSequence(
            requester=requester,
            grid=slot_grid(day, requester.timezone),
            sessions=sessions,
            owners=owners,
            now=now,
        )
