# backend/consultly/services/notification_service.py
"""
Notification Service for Consultly

Persists in-app notifications. Delivery is best-effort: callers invoke
``notify`` after their own state change has committed, and a failure here
is logged and swallowed so it can never undo that change.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import NotificationType
from ..core.exceptions import NotFoundException
from ..models.booking import Booking
from ..models.notification import Notification
from ..repositories import RepositoryFactory
from ..repositories.notification_repository import NotificationRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    def __init__(self, db: Session, repository: Optional[NotificationRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_notification_repository(db)

    @BaseService.measure_operation("notify")
    def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        related_booking_id: Optional[str] = None,
    ) -> Optional[Notification]:
        """Store one notification; returns None instead of raising on failure."""
        try:
            with self.transaction():
                notification = self.repository.create(
                    user_id=user_id,
                    type=NotificationType(type).value,
                    title=title,
                    message=message,
                    related_booking_id=related_booking_id,
                )
            return notification
        except Exception as exc:
            self.logger.error(
                "Failed to create notification",
                extra={
                    "user_id": user_id,
                    "notification_type": str(type),
                    "booking_id": related_booking_id,
                    "error": str(exc),
                },
            )
            return None

    def notify_booking(
        self, user_id: str, type: NotificationType, title: str, booking: Booking
    ) -> Optional[Notification]:
        """Notification carrying the booking's date and time in the message."""
        message = f"{booking.booking_date.isoformat()} {booking.start_time}-{booking.end_time}"
        return self.notify(user_id, type, title, message, related_booking_id=booking.id)

    @BaseService.measure_operation("list_notifications")
    def list_for_user(
        self, user_id: str, *, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> List[Notification]:
        return self.repository.list_for_user(
            user_id, unread_only=unread_only, limit=limit, offset=offset
        )

    def unread_count(self, user_id: str) -> int:
        return self.repository.unread_count(user_id)

    @BaseService.measure_operation("mark_notification_read")
    def mark_read(self, user_id: str, notification_id: str) -> Notification:
        with self.transaction():
            notification = self.repository.get_by_id(notification_id)
            if notification is None or notification.user_id != user_id:
                raise NotFoundException("Notification not found")
            notification.is_read = True
            self.repository.flush()
        return notification

    @BaseService.measure_operation("mark_all_notifications_read")
    def mark_all_read(self, user_id: str) -> int:
        with self.transaction():
            return self.repository.mark_all_read(user_id)
