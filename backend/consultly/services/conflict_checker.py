# backend/consultly/services/conflict_checker.py
"""
Conflict Checker Service for Consultly

Booking conflict detection. Two intervals overlap when each starts before
the other ends; intervals that only touch (one ends exactly when the other
starts) do not overlap. Only pending and confirmed bookings are considered.

All checks are read-only so they can be used both speculatively (the
availability check shown before booking) and inside the booking
transaction.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Any, Dict, List, Optional, TypeVar

from sqlalchemy.orm import Session

from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def intervals_overlap(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    """
    Half-open interval overlap test.

    Works for any ordered values: "HH:MM" strings, minutes or datetimes.
    """
    return a_start < b_end and a_end > b_start  # type: ignore[operator]


class ConflictChecker(BaseService):
    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("check_booking_conflicts")
    def check_booking_conflicts(
        self,
        teacher_profile_id: str,
        check_date: date,
        start_time: str,
        end_time: str,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Live bookings overlapping ``[start_time, end_time)`` on ``check_date``.

        Args:
            teacher_profile_id: The provider to check
            check_date: The date to check
            start_time: "HH:MM" start of the candidate interval
            end_time: "HH:MM" end of the candidate interval
            exclude_booking_id: Booking to ignore, used on reschedule so a
                booking never conflicts with its own current interval

        Returns:
            One dict per conflicting booking
        """
        bookings = self.repository.get_bookings_for_conflict_check(
            teacher_profile_id, check_date, exclude_booking_id
        )

        conflicts = [
            {
                "booking_id": booking.id,
                "start_time": booking.start_time,
                "end_time": booking.end_time,
                "status": booking.status,
            }
            for booking in bookings
            if intervals_overlap(start_time, end_time, booking.start_time, booking.end_time)
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for {teacher_profile_id} "
                f"on {check_date} between {start_time}-{end_time}"
            )
        return conflicts

    @BaseService.measure_operation("check_time_conflicts")
    def check_time_conflicts(
        self,
        teacher_profile_id: str,
        check_date: date,
        start_time: str,
        end_time: str,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """True when any live booking overlaps the interval."""
        return bool(
            self.check_booking_conflicts(
                teacher_profile_id, check_date, start_time, end_time, exclude_booking_id
            )
        )

    @BaseService.measure_operation("get_booked_times_date")
    def get_booked_times_for_date(
        self, teacher_profile_id: str, target_date: date
    ) -> List[Dict[str, str]]:
        """Start/end of every live booking on a date, ordered by start."""
        bookings = self.repository.get_bookings_for_date(teacher_profile_id, target_date)
        return [{"start_time": b.start_time, "end_time": b.end_time} for b in bookings]
