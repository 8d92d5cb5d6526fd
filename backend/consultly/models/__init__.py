# backend/consultly/models/__init__.py
"""
SQLAlchemy models for Consultly.

Importing this package registers every table on ``Base.metadata``.
"""

from .availability import AvailabilityRule
from .booking import (
    ACTIVE_BOOKING_STATUSES,
    BOOKING_TRANSITIONS,
    TERMINAL_BOOKING_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from .calendar import GoogleCalendarBusySlot, GoogleCalendarToken
from .notification import Notification
from .review import Review
from .service import Service
from .teacher_profile import TeacherProfile
from .user import User

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "AvailabilityRule",
    "BOOKING_TRANSITIONS",
    "Booking",
    "BookingStatus",
    "GoogleCalendarBusySlot",
    "GoogleCalendarToken",
    "Notification",
    "PaymentStatus",
    "Review",
    "Service",
    "TERMINAL_BOOKING_STATUSES",
    "TeacherProfile",
    "User",
]
