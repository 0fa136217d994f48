# backend/focuspair/services/report_service.py
"""
Partner reports.

A participant may report the other participant of a session they were in.
Reports are stored as `pending` for moderation; nothing else about the
session or either profile changes.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    NotParticipantException,
    SessionConflictException,
    SessionNotFoundException,
    ValidationException,
)
from ..models.report import ReportStatus, SessionReport
from ..repositories.factory import RepositoryFactory
from ..repositories.report_repository import ReportRepository
from ..repositories.session_repository import SessionRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class ReportService(BaseService):
    def __init__(
        self,
        db: Session,
        session_repository: Optional[SessionRepository] = None,
        report_repository: Optional[ReportRepository] = None,
    ):
        super().__init__(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.report_repository = report_repository or RepositoryFactory.create_report_repository(db)

    @BaseService.measure_operation("report_partner")
    def report(
        self,
        reporter_id: str,
        session_id: str,
        reported_id: str,
        reason: str,
        description: Optional[str] = None,
    ) -> SessionReport:
        """
        File a report against the other participant of a session.

        Raises:
            SessionNotFoundException: Unknown session
            NotParticipantException: Reporter was not in the session
            ValidationException: Reported user was not in the session, or is the reporter
            SessionConflictException: Reporter already reported this session
        """
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        if not session.is_participant(reporter_id):
            raise NotParticipantException(session_id, "report on")
        if not session.is_participant(reported_id):
            raise ValidationException(
                "Reported user is not part of this session",
                code="REPORTED_NOT_PARTICIPANT",
                details={"session_id": session_id},
            )
        if reported_id == reporter_id:
            raise ValidationException("Cannot report yourself", code="SELF_REPORT")

        try:
            with self.transaction():
                report = self.report_repository.create(
                    session_id=session_id,
                    reporter_id=reporter_id,
                    reported_id=reported_id,
                    reason=reason,
                    description=description,
                    status=ReportStatus.PENDING.value,
                )
        except IntegrityError as exc:
            raise SessionConflictException(
                "You have already reported this session", details={"session_id": session_id}
            ) from exc

        self.logger.warning(
            "Report %s filed on session %s: %s reported %s (%s)",
            report.id,
            session_id,
            reporter_id,
            reported_id,
            reason,
        )
        return report
