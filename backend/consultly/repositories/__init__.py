# backend/consultly/repositories/__init__.py
"""
Repository layer for Consultly.

Usage:
    from consultly.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    booking = repository.get_by_id(booking_id)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .calendar_repository import GoogleCalendarBusySlotRepository, GoogleCalendarTokenRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .review_repository import ReviewRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "BookingRepository",
    "ConflictCheckerRepository",
    "GoogleCalendarBusySlotRepository",
    "GoogleCalendarTokenRepository",
    "IRepository",
    "NotificationRepository",
    "RepositoryFactory",
    "ReviewRepository",
]
