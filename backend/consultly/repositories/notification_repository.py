# backend/consultly/repositories/notification_repository.py
"""Notification Repository: in-app notification inbox queries."""

from __future__ import annotations

import logging
from typing import List, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.notification import Notification
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)
        self.logger = logging.getLogger(__name__)

    def list_for_user(
        self, user_id: str, *, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> List[Notification]:
        try:
            query = self.db.query(Notification).filter(Notification.user_id == user_id)
            if unread_only:
                query = query.filter(Notification.is_read.is_(False))
            return cast(
                List[Notification],
                query.order_by(Notification.created_at.desc(), Notification.id.desc())
                .offset(offset)
                .limit(limit)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing notifications for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list notifications: {str(e)}")

    def unread_count(self, user_id: str) -> int:
        return self.count(user_id=user_id, is_read=False)

    def mark_all_read(self, user_id: str) -> int:
        try:
            updated = (
                self.db.query(Notification)
                .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
                .update({Notification.is_read: True}, synchronize_session=False)
            )
            self.db.flush()
            return int(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking notifications read for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to mark notifications read: {str(e)}")
