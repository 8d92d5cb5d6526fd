# backend/consultly/repositories/calendar_repository.py
"""
Calendar Repositories for Consultly

GoogleCalendarTokenRepository keeps one OAuth grant per teacher.
GoogleCalendarBusySlotRepository manages the cached busy intervals, which
are only ever replaced as a whole set.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.calendar import GoogleCalendarBusySlot, GoogleCalendarToken
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class GoogleCalendarTokenRepository(BaseRepository[GoogleCalendarToken]):
    def __init__(self, db: Session):
        super().__init__(db, GoogleCalendarToken)
        self.logger = logging.getLogger(__name__)

    def get_by_teacher(self, teacher_profile_id: str) -> Optional[GoogleCalendarToken]:
        return self.find_one_by(teacher_profile_id=teacher_profile_id)

    def upsert(
        self,
        teacher_profile_id: str,
        *,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
        calendar_id: str,
    ) -> GoogleCalendarToken:
        """Create the teacher's token row or overwrite it, reactivating it."""
        existing = self.get_by_teacher(teacher_profile_id)
        if existing is None:
            return self.create(
                teacher_profile_id=teacher_profile_id,
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=expires_at,
                calendar_id=calendar_id,
                is_active=True,
            )
        existing.access_token = access_token
        existing.refresh_token = refresh_token
        existing.expires_at = expires_at
        existing.calendar_id = calendar_id
        existing.is_active = True
        self.db.flush()
        return existing

    def list_active(self) -> List[GoogleCalendarToken]:
        try:
            return cast(
                List[GoogleCalendarToken],
                self.db.query(GoogleCalendarToken)
                .filter(GoogleCalendarToken.is_active.is_(True))
                .order_by(GoogleCalendarToken.teacher_profile_id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing active calendar tokens: {str(e)}")
            raise RepositoryException(f"Failed to list calendar tokens: {str(e)}")

    def delete_for_teacher(self, teacher_profile_id: str) -> int:
        try:
            deleted = (
                self.db.query(GoogleCalendarToken)
                .filter(GoogleCalendarToken.teacher_profile_id == teacher_profile_id)
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(deleted)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting calendar token: {str(e)}")
            raise RepositoryException(f"Failed to delete calendar token: {str(e)}")


class GoogleCalendarBusySlotRepository(BaseRepository[GoogleCalendarBusySlot]):
    def __init__(self, db: Session):
        super().__init__(db, GoogleCalendarBusySlot)
        self.logger = logging.getLogger(__name__)

    def get_overlapping(
        self, teacher_profile_id: str, start: datetime, end: datetime
    ) -> List[GoogleCalendarBusySlot]:
        """Cached busy slots overlapping the half-open window ``[start, end)``."""
        try:
            return cast(
                List[GoogleCalendarBusySlot],
                self.db.query(GoogleCalendarBusySlot)
                .filter(
                    GoogleCalendarBusySlot.teacher_profile_id == teacher_profile_id,
                    GoogleCalendarBusySlot.start_time < end,
                    GoogleCalendarBusySlot.end_time > start,
                )
                .order_by(GoogleCalendarBusySlot.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting busy slots for {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to get busy slots: {str(e)}")

    def list_for_teacher(self, teacher_profile_id: str) -> List[GoogleCalendarBusySlot]:
        try:
            return cast(
                List[GoogleCalendarBusySlot],
                self.db.query(GoogleCalendarBusySlot)
                .filter(GoogleCalendarBusySlot.teacher_profile_id == teacher_profile_id)
                .order_by(GoogleCalendarBusySlot.start_time, GoogleCalendarBusySlot.event_id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing busy slots for {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to list busy slots: {str(e)}")

    def delete_for_teacher(self, teacher_profile_id: str) -> int:
        try:
            deleted = (
                self.db.query(GoogleCalendarBusySlot)
                .filter(GoogleCalendarBusySlot.teacher_profile_id == teacher_profile_id)
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(deleted)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting busy slots for {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete busy slots: {str(e)}")
