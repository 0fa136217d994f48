# backend/focuspair/schemas/sweeps.py
"""Responses of the internal sweep endpoints."""

from pydantic import BaseModel


class MatchSweepResponse(BaseModel):
    success: bool = True
    examined: int
    paired: int
    lost_race: int
    unresolved: int
    failed: int
    processed_at: str


class NoShowSweepResponse(BaseModel):
    success: bool = True
    processed: int
    marked: int
    penalized: int
    skipped: int
    failed: int
    processed_at: str


class ReminderSweepResponse(BaseModel):
    success: bool = True
    processed: int
    reminded: int
    skipped: int
    failed: int
    processed_at: str


class OrphanSweepResponse(BaseModel):
    success: bool = True
    examined: int
    orphaned: int
    deleted: int
    cancelled: int
    skipped: int
    failed: int
    processed_at: str
