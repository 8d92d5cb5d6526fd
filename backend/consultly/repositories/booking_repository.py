# backend/consultly/repositories/booking_repository.py
"""
Booking Repository for Consultly

Booking lookups, listings and the provider row lock taken before a
conflict check so concurrent creates for one teacher serialise.
"""

from __future__ import annotations

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database.session_utils import supports_row_locks
from ..models.booking import Booking
from ..models.teacher_profile import TeacherProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def lock_teacher_profile(self, teacher_profile_id: str) -> Optional[TeacherProfile]:
        """
        Load the teacher profile with ``SELECT ... FOR UPDATE``.

        The lock is held until the surrounding transaction ends. SQLite has no
        row locks; its single writer gives the same ordering.
        """
        try:
            query = self.db.query(TeacherProfile).filter(TeacherProfile.id == teacher_profile_id)
            if supports_row_locks(self.db):
                query = query.with_for_update()
            return cast(Optional[TeacherProfile], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking teacher profile {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock teacher profile: {str(e)}")

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        try:
            query = self.db.query(Booking).filter(Booking.id == booking_id)
            if supports_row_locks(self.db):
                query = query.with_for_update()
            return cast(Optional[Booking], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading booking {booking_id} for update: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}")

    def list_for_user(self, user_id: str, status: Optional[str] = None) -> List[Booking]:
        try:
            query = self.db.query(Booking).filter(Booking.user_id == user_id)
            if status:
                query = query.filter(Booking.status == status)
            return cast(
                List[Booking],
                query.order_by(Booking.booking_date.desc(), Booking.start_time.desc()).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def list_for_teacher(
        self, teacher_profile_id: str, status: Optional[str] = None
    ) -> List[Booking]:
        try:
            query = self.db.query(Booking).filter(Booking.teacher_profile_id == teacher_profile_id)
            if status:
                query = query.filter(Booking.status == status)
            return cast(
                List[Booking],
                query.order_by(Booking.booking_date.desc(), Booking.start_time.desc()).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for teacher {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")
