# backend/focuspair/repositories/report_repository.py
"""Partner reports filed by session participants."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.report import SessionReport
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ReportRepository(BaseRepository[SessionReport]):
    def __init__(self, db: Session):
        super().__init__(db, SessionReport)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> SessionReport:
        """Create a report; a repeat report by the same reporter surfaces as IntegrityError."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise
