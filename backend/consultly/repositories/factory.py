# backend/consultly/repositories/factory.py
"""
Repository Factory for Consultly

Centralizes repository creation so services never construct repositories
directly and tests can patch one place.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .booking_repository import BookingRepository
    from .calendar_repository import (
        GoogleCalendarBusySlotRepository,
        GoogleCalendarTokenRepository,
    )
    from .conflict_checker_repository import ConflictCheckerRepository
    from .notification_repository import NotificationRepository
    from .review_repository import ReviewRepository


class RepositoryFactory:
    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Generic CRUD repository for models without custom queries."""
        return BaseRepository(db, model)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_calendar_token_repository(db: Session) -> "GoogleCalendarTokenRepository":
        from .calendar_repository import GoogleCalendarTokenRepository

        return GoogleCalendarTokenRepository(db)

    @staticmethod
    def create_calendar_busy_slot_repository(db: Session) -> "GoogleCalendarBusySlotRepository":
        from .calendar_repository import GoogleCalendarBusySlotRepository

        return GoogleCalendarBusySlotRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)

    @staticmethod
    def create_review_repository(db: Session) -> "ReviewRepository":
        from .review_repository import ReviewRepository

        return ReviewRepository(db)
