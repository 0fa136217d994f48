# backend/focuspair/schemas/slots.py
"""Slot availability response schemas."""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import Field

from ..services.slot_availability_service import SlotDescriptor, SlotSequence
from ._strict_base import StrictModel


class WaitingUserInfo(StrictModel):
    first_name: str
    duration: int


class SlotResponse(StrictModel):
    time: str = Field(..., description="Local HH:MM label in the requester's timezone")
    start_time: datetime = Field(..., description="UTC instant to submit when booking this slot")
    status: Literal["available", "waiting", "unavailable"]
    available: bool
    session_id: Optional[str] = None
    waiting_user: Optional[WaitingUserInfo] = None

    @classmethod
    def from_descriptor(cls, slot: SlotDescriptor) -> "SlotResponse":
        return cls(
            time=slot.local_time,
            start_time=slot.start_time,
            status=slot.status.value,
            available=slot.available,
            session_id=slot.session_id,
            waiting_user=(
                WaitingUserInfo(
                    first_name=slot.waiting_user.first_name,
                    duration=slot.waiting_user.duration,
                )
                if slot.waiting_user
                else None
            ),
        )


class AvailableSlotsResponse(StrictModel):
    date: date
    user_language: str
    user_timezone: str
    slots: List[SlotResponse]

    @classmethod
    def from_sequence(cls, day: date, sequence: SlotSequence) -> "AvailableSlotsResponse":
        return cls(
            date=day,
            user_language=sequence.requester.language,
            user_timezone=sequence.requester.timezone,
            slots=[SlotResponse.from_descriptor(slot) for slot in sequence],
        )
