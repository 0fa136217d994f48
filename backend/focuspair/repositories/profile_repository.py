# backend/focuspair/repositories/profile_repository.py
"""Participant profile lookups and engine-owned counter updates."""

import logging
from typing import Dict, Iterable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.profile import ParticipantProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProfileRepository(BaseRepository[ParticipantProfile]):
    def __init__(self, db: Session):
        super().__init__(db, ParticipantProfile)
        self.logger = logging.getLogger(__name__)

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, ParticipantProfile]:
        """Batch lookup keyed by id; missing ids are simply absent."""
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return {}
        try:
            rows = (
                self.db.query(ParticipantProfile)
                .filter(ParticipantProfile.id.in_(ids))
                .populate_existing()
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading profiles: {str(e)}")
            raise RepositoryException(f"Failed to load profiles: {str(e)}")
        return {row.id: row for row in rows}

    def increment_no_show(self, user_id: str) -> bool:
        """Add one no-show and one strike in a single relative UPDATE."""
        stmt = (
            update(ParticipantProfile)
            .where(ParticipantProfile.id == user_id)
            .values(
                no_show_count=ParticipantProfile.no_show_count + 1,
                strike_count=ParticipantProfile.strike_count + 1,
            )
        )
        return self._execute_write(stmt) == 1

    def increment_total_sessions(self, user_ids: Iterable[str]) -> int:
        ids = [uid for uid in user_ids if uid]
        if not ids:
            return 0
        stmt = (
            update(ParticipantProfile)
            .where(ParticipantProfile.id.in_(ids))
            .values(total_sessions=ParticipantProfile.total_sessions + 1)
        )
        return self._execute_write(stmt)
