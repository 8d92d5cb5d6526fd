# backend/consultly/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for Consultly

Read-only booking queries used by conflict detection. Only bookings in a
live status (pending, confirmed) occupy time; completed, cancelled and
refunded bookings never block a slot.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_BOOKING_STATUSES, Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_bookings_for_conflict_check(
        self, teacher_profile_id: str, check_date: date, exclude_booking_id: Optional[str] = None
    ) -> List[Booking]:
        """
        Live bookings for a teacher on a date.

        Args:
            teacher_profile_id: The provider to check
            check_date: The date to check for conflicts
            exclude_booking_id: Booking to leave out (the one being rescheduled)
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.teacher_profile_id == teacher_profile_id,
                Booking.booking_date == check_date,
                Booking.status.in_(sorted(ACTIVE_BOOKING_STATUSES)),
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return cast(List[Booking], query.order_by(Booking.start_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def get_bookings_for_date(self, teacher_profile_id: str, target_date: date) -> List[Booking]:
        return self.get_bookings_for_conflict_check(teacher_profile_id, target_date)
