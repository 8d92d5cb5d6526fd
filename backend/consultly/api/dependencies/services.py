# backend/consultly/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets services bound to its own database session. The Google
Calendar client is process-wide; tests override ``get_google_calendar_client``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...integrations.google_calendar_client import GoogleCalendarClient
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.calendar_sync_service import CalendarSyncService, build_google_calendar_client
from ...services.notification_service import NotificationService
from ...services.review_service import ReviewService
from ...services.stripe_service import StripeService
from .database import get_db


@lru_cache(maxsize=1)
def _google_calendar_client_singleton() -> GoogleCalendarClient:
    return build_google_calendar_client()


def get_google_calendar_client() -> GoogleCalendarClient:
    return _google_calendar_client_singleton()


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_calendar_sync_service(
    db: Session = Depends(get_db),
    client: GoogleCalendarClient = Depends(get_google_calendar_client),
) -> CalendarSyncService:
    return CalendarSyncService(db, client)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    calendar_service: CalendarSyncService = Depends(get_calendar_sync_service),
) -> BookingService:
    return BookingService(
        db,
        notification_service=notification_service,
        calendar_service=calendar_service,
    )


def get_stripe_service(
    db: Session = Depends(get_db),
    booking_service: BookingService = Depends(get_booking_service),
) -> StripeService:
    return StripeService(db, booking_service=booking_service)


def get_review_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> ReviewService:
    return ReviewService(db, notification_service=notification_service)
