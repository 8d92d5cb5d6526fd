# backend/consultly/repositories/availability_repository.py
"""Availability Repository: weekly rules, replaced wholesale on save."""

from __future__ import annotations

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityRule
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityRule]):
    def __init__(self, db: Session):
        super().__init__(db, AvailabilityRule)
        self.logger = logging.getLogger(__name__)

    def get_rules(
        self, teacher_profile_id: str, day_of_week: Optional[int] = None, active_only: bool = True
    ) -> List[AvailabilityRule]:
        """Rules ordered by day then start time."""
        try:
            query = self.db.query(AvailabilityRule).filter(
                AvailabilityRule.teacher_profile_id == teacher_profile_id
            )
            if day_of_week is not None:
                query = query.filter(AvailabilityRule.day_of_week == day_of_week)
            if active_only:
                query = query.filter(AvailabilityRule.is_active.is_(True))
            return cast(
                List[AvailabilityRule],
                query.order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting availability for {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to get availability: {str(e)}")

    def delete_all_for_teacher(self, teacher_profile_id: str) -> int:
        try:
            deleted = (
                self.db.query(AvailabilityRule)
                .filter(AvailabilityRule.teacher_profile_id == teacher_profile_id)
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(deleted)
        except SQLAlchemyError as e:
            self.logger.error(f"Error clearing availability for {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to clear availability: {str(e)}")
