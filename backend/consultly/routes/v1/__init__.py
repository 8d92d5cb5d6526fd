# backend/consultly/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, calendar, health, notifications, reviews, stripe_webhooks, teachers

__all__ = [
    "bookings",
    "calendar",
    "health",
    "notifications",
    "reviews",
    "stripe_webhooks",
    "teachers",
]
