# backend/consultly/core/enums.py
"""
Core enums for the Consultly platform.

Role names are stored on the user row; booking and payment statuses live
next to the Booking model.
"""

from __future__ import annotations

from enum import Enum


class RoleName(str, Enum):
    """Account roles."""

    ADMIN = "admin"
    TEACHER = "teacher"
    USER = "user"


class NotificationType(str, Enum):
    """In-app notification categories."""

    BOOKING_NEW = "booking_new"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_RESCHEDULED = "booking_rescheduled"
    BOOKING_REMINDER = "booking_reminder"
    PAYMENT_RECEIVED = "payment_received"
    REVIEW_NEW = "review_new"
    SYSTEM = "system"
