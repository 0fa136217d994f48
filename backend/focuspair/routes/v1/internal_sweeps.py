# backend/focuspair/routes/v1/internal_sweeps.py
"""
Sweep endpoints for the external scheduler.

The same sweeps also run from Celery beat; these endpoints let a plain
HTTP cron trigger them. Authenticated with `Authorization: Bearer <CRON_SECRET>`.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import (
    get_match_reconciler,
    get_no_show_monitor,
    get_orphan_session_sweeper,
    get_reminder_service,
    require_cron_secret,
)
from ...schemas.sweeps import (
    MatchSweepResponse,
    NoShowSweepResponse,
    OrphanSweepResponse,
    ReminderSweepResponse,
)
from ...services.match_reconciler import MatchReconciler
from ...services.no_show_monitor import NoShowMonitor
from ...services.orphan_session_sweeper import OrphanSessionSweeper
from ...services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["internal-sweeps"],
    include_in_schema=False,
    dependencies=[Depends(require_cron_secret)],
)


@router.post("/match-sessions", response_model=MatchSweepResponse)
async def run_match_sweep(
    reconciler: MatchReconciler = Depends(get_match_reconciler),
) -> MatchSweepResponse:
    results = await asyncio.to_thread(reconciler.run)
    logger.info("Match sweep via HTTP: %s", results)
    return MatchSweepResponse(**results)


@router.post("/no-shows", response_model=NoShowSweepResponse)
async def run_no_show_sweep(
    monitor: NoShowMonitor = Depends(get_no_show_monitor),
) -> NoShowSweepResponse:
    results = await asyncio.to_thread(monitor.run)
    logger.info("No-show sweep via HTTP: %s", results)
    return NoShowSweepResponse(**results)


@router.post("/reminders", response_model=ReminderSweepResponse)
async def run_reminder_sweep(
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> ReminderSweepResponse:
    results = await asyncio.to_thread(reminder_service.run)
    logger.info("Reminder sweep via HTTP: %s", results)
    return ReminderSweepResponse(**results)


@router.post("/orphaned-sessions", response_model=OrphanSweepResponse)
async def run_orphan_sweep(
    sweeper: OrphanSessionSweeper = Depends(get_orphan_session_sweeper),
) -> OrphanSweepResponse:
    """Delete or cancel active sessions whose participant profiles are gone."""
    results = await asyncio.to_thread(sweeper.run)
    logger.info("Orphan sweep via HTTP: %s", results)
    return OrphanSweepResponse(**results)
