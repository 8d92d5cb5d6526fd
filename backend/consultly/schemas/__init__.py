# backend/consultly/schemas/__init__.py
"""Pydantic schemas for the Consultly API."""

from .availability import (
    AvailabilityResponse,
    AvailabilityRuleIn,
    AvailabilityRuleResponse,
    AvailabilityUpdate,
)
from .booking import (
    AvailabilityCheckResponse,
    AvailableSlotsResponse,
    BookingCancel,
    BookingCreate,
    BookingListResponse,
    BookingReschedule,
    BookingResponse,
    CheckAvailabilityRequest,
)
from .calendar import (
    BusySlotResponse,
    CalendarAuthUrlResponse,
    CalendarEvent,
    CalendarStatusResponse,
    CalendarSyncResponse,
)
from .notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from .payment import WebhookResponse
from .review import ReviewCreate, ReviewListResponse, ReviewReply, ReviewResponse

__all__ = [
    "AvailabilityCheckResponse",
    "AvailabilityResponse",
    "AvailabilityRuleIn",
    "AvailabilityRuleResponse",
    "AvailabilityUpdate",
    "AvailableSlotsResponse",
    "BookingCancel",
    "BookingCreate",
    "BookingListResponse",
    "BookingReschedule",
    "BookingResponse",
    "BusySlotResponse",
    "CalendarAuthUrlResponse",
    "CalendarEvent",
    "CalendarStatusResponse",
    "CalendarSyncResponse",
    "CheckAvailabilityRequest",
    "MarkAllReadResponse",
    "NotificationListResponse",
    "NotificationResponse",
    "ReviewCreate",
    "ReviewListResponse",
    "ReviewReply",
    "ReviewResponse",
    "UnreadCountResponse",
    "WebhookResponse",
]
