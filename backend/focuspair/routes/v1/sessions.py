# backend/focuspair/routes/v1/sessions.py
"""
Session routes - API v1

Versioned session endpoints under /api/v1/sessions.
All business logic delegated to the service layer.

Endpoints:
    GET /available - Slot grid for one local calendar day
    POST /book - Create a waiting session or join one
    GET /mine - Upcoming or past sessions of the caller
    GET /{session_id} - Session detail (participants only)
    POST /{session_id}/join - Record presence and get the room token
    POST /{session_id}/complete - Conferencing completion signal
    POST /{session_id}/cancel - Cancel a session
    POST /{session_id}/report - Report the other participant
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ...api.dependencies import (
    get_booking_service,
    get_cancellation_service,
    get_current_participant_id,
    get_report_service,
    get_session_service,
    get_slot_availability_service,
)
from ...core.exceptions import DomainException
from ...schemas.report import ReportPartnerRequest, ReportPartnerResponse
from ...schemas.session import (
    BookSessionRequest,
    BookSessionResponse,
    CancelSessionResponse,
    JoinSessionResponse,
    SessionListResponse,
    SessionResponse,
)
from ...schemas.slots import AvailableSlotsResponse
from ...services.booking_service import BookAction, BookingService
from ...services.cancellation_service import CancellationService
from ...services.report_service import ReportService
from ...services.session_service import SessionListKind, SessionService
from ...services.slot_availability_service import SlotAvailabilityService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["sessions-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("/available", response_model=AvailableSlotsResponse)
async def get_available_slots(
    day: date = Query(..., alias="date", description="Local calendar day (YYYY-MM-DD)"),
    current_user_id: str = Depends(get_current_participant_id),
    slot_service: SlotAvailabilityService = Depends(get_slot_availability_service),
) -> AvailableSlotsResponse:
    """Slot grid for `date` in the caller's timezone, annotated for the caller's language."""
    try:

        def _resolve() -> AvailableSlotsResponse:
            sequence = slot_service.resolve(day, current_user_id)
            return AvailableSlotsResponse.from_sequence(day, sequence)

        return await asyncio.to_thread(_resolve)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/book", response_model=BookSessionResponse, status_code=status.HTTP_201_CREATED)
async def book_session(
    payload: BookSessionRequest,
    current_user_id: str = Depends(get_current_participant_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookSessionResponse:
    """
    Book a slot.

    `create` makes a waiting session unless a same-language partner is
    already waiting at the exact slot, in which case the caller joins it.
    `join` claims the given waiting session or fails with 409.
    """
    try:
        result = await asyncio.to_thread(
            booking_service.book,
            current_user_id,
            payload.start_time,
            payload.duration,
            BookAction(payload.action),
            payload.session_id,
        )
        return BookSessionResponse.from_result(result, current_user_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/mine", response_model=SessionListResponse)
async def list_my_sessions(
    kind: SessionListKind = Query(SessionListKind.UPCOMING),
    limit: int = Query(50, ge=1, le=100),
    current_user_id: str = Depends(get_current_participant_id),
    session_service: SessionService = Depends(get_session_service),
) -> SessionListResponse:
    sessions = await asyncio.to_thread(session_service.list_sessions, current_user_id, kind, limit)
    items = [SessionResponse.from_session(s, current_user_id) for s in sessions]
    return SessionListResponse(items=items, total=len(items), kind=kind.value)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters)
# ============================================================================


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_participant_id),
    session_service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(
            session_service.get_for_participant, session_id, current_user_id
        )
        return SessionResponse.from_session(session, current_user_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{session_id}/join", response_model=JoinSessionResponse)
async def join_session(
    session_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_participant_id),
    session_service: SessionService = Depends(get_session_service),
) -> JoinSessionResponse:
    """Mark the caller as present. Opens five minutes before the start."""
    try:
        result = await asyncio.to_thread(session_service.mark_joined, session_id, current_user_id)
        return JoinSessionResponse(
            session_id=result.session.id,
            room_token=result.room_token,
            user1_joined=bool(result.session.user1_joined),
            user2_joined=bool(result.session.user2_joined),
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{session_id}/complete", response_model=SessionResponse)
async def complete_session(
    session_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_participant_id),
    session_service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(session_service.complete, session_id, current_user_id)
        return SessionResponse.from_session(session, current_user_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{session_id}/cancel", response_model=CancelSessionResponse)
async def cancel_session(
    session_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_participant_id),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> CancelSessionResponse:
    """Cancel a session more than one hour before it starts."""
    try:
        session = await asyncio.to_thread(
            cancellation_service.cancel, current_user_id, session_id
        )
        return CancelSessionResponse(session_id=session.id, status=session.status)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{session_id}/report",
    response_model=ReportPartnerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def report_partner(
    payload: ReportPartnerRequest,
    session_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_participant_id),
    report_service: ReportService = Depends(get_report_service),
) -> ReportPartnerResponse:
    """Report the other participant of a session the caller took part in."""
    try:
        report = await asyncio.to_thread(
            report_service.report,
            current_user_id,
            session_id,
            payload.reported_user_id,
            payload.reason,
            payload.description,
        )
        return ReportPartnerResponse(report_id=report.id)
    except DomainException as e:
        handle_domain_exception(e)
