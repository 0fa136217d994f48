from .session import (
    BookSessionRequest,
    BookSessionResponse,
    CancelSessionResponse,
    JoinSessionResponse,
    SessionListResponse,
    SessionResponse,
)
from .report import ReportPartnerRequest, ReportPartnerResponse
from .slots import AvailableSlotsResponse, SlotResponse, WaitingUserInfo
from .sweeps import (
    MatchSweepResponse,
    NoShowSweepResponse,
    OrphanSweepResponse,
    ReminderSweepResponse,
)

__all__ = [
    "AvailableSlotsResponse",
    "BookSessionRequest",
    "BookSessionResponse",
    "CancelSessionResponse",
    "JoinSessionResponse",
    "MatchSweepResponse",
    "NoShowSweepResponse",
    "OrphanSweepResponse",
    "ReminderSweepResponse",
    "ReportPartnerRequest",
    "ReportPartnerResponse",
    "SessionListResponse",
    "SessionResponse",
    "SlotResponse",
    "WaitingUserInfo",
]
