# backend/consultly/schemas/notification.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from ..core.enums import NotificationType
from ._strict_base import StrictModel


class NotificationResponse(StrictModel):
    id: str
    type: NotificationType
    title: str
    message: str
    related_booking_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None


class NotificationListResponse(StrictModel):
    items: List[NotificationResponse]
    unread_count: int


class UnreadCountResponse(StrictModel):
    unread_count: int


class MarkAllReadResponse(StrictModel):
    updated: int
