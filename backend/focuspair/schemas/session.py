# backend/focuspair/schemas/session.py
"""
Session schemas for the FocusPair booking engine.

Instants cross the API as ISO-8601 strings. Naive values are read as UTC;
everything returned is UTC with an explicit offset.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from ..core.timezone_utils import ensure_utc
from ..models.session import FocusSession
from ..services.booking_service import BookingResult
from ._strict_base import StrictModel, StrictRequestModel


class BookSessionRequest(StrictRequestModel):
    """
    Book a slot, either by creating a session or by joining a waiting one.

    `datetime` is accepted as an alias of `start_time`.
    """

    start_time: datetime = Field(
        ...,
        validation_alias=AliasChoices("start_time", "datetime"),
        description="Slot instant (the exact start_time of a waiting session when joining)",
    )
    duration: Literal[25, 50] = Field(..., description="Session length in minutes")
    action: Literal["create", "join"] = Field("create", description="Create or join")
    session_id: Optional[str] = Field(
        None, min_length=26, max_length=26, description="Waiting session to join (join only)"
    )

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class SessionResponse(StrictModel):
    """A session as seen by one of its participants."""

    id: str
    start_time: datetime
    end_time: datetime
    duration: int
    status: str
    user1_id: str
    user2_id: Optional[str] = None
    user1_joined: bool
    user2_joined: bool
    partner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="forbid")

    @classmethod
    def from_session(cls, session: FocusSession, viewer_id: Optional[str] = None) -> "SessionResponse":
        return cls(
            id=session.id,
            start_time=session.start_time,
            end_time=session.end_time,
            duration=session.duration,
            status=session.status,
            user1_id=session.user1_id,
            user2_id=session.user2_id,
            user1_joined=bool(session.user1_joined),
            user2_joined=bool(session.user2_joined),
            partner_id=session.partner_of(viewer_id) if viewer_id else None,
            created_at=session.created_at,
            completed_at=session.completed_at,
            cancelled_at=session.cancelled_at,
        )


class BookSessionResponse(StrictModel):
    success: bool = True
    message: str
    instant_match: bool = False
    session: SessionResponse

    @classmethod
    def from_result(cls, result: BookingResult, viewer_id: str) -> "BookSessionResponse":
        return cls(
            message=result.message,
            instant_match=result.instant_match,
            session=SessionResponse.from_session(result.session, viewer_id),
        )


class SessionListResponse(StrictModel):
    items: List[SessionResponse]
    total: int
    kind: Literal["upcoming", "past"]


class CancelSessionResponse(StrictModel):
    success: bool = True
    message: str = "Session cancelled"
    session_id: str
    status: str


class JoinSessionResponse(StrictModel):
    success: bool = True
    session_id: str
    room_token: str = Field(..., description="Opaque room identifier for the conferencing provider")
    user1_joined: bool
    user2_joined: bool
