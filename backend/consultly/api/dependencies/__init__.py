# backend/consultly/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_active_user, get_current_user
from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_calendar_sync_service,
    get_google_calendar_client,
    get_notification_service,
    get_review_service,
    get_stripe_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "get_current_active_user",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_service",
    "get_calendar_sync_service",
    "get_google_calendar_client",
    "get_notification_service",
    "get_review_service",
    "get_stripe_service",
]
