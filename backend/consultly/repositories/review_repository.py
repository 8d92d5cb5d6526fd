# backend/consultly/repositories/review_repository.py
"""Review Repository: teacher review listings and rating aggregates."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple, cast

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.review import Review
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ReviewRepository(BaseRepository[Review]):
    def __init__(self, db: Session):
        super().__init__(db, Review)
        self.logger = logging.getLogger(__name__)

    def get_by_booking(self, booking_id: str) -> Optional[Review]:
        return self.find_one_by(booking_id=booking_id)

    def list_visible_for_teacher(
        self, teacher_profile_id: str, *, limit: int = 20, offset: int = 0
    ) -> List[Review]:
        try:
            return cast(
                List[Review],
                self.db.query(Review)
                .filter(Review.teacher_profile_id == teacher_profile_id, Review.is_visible.is_(True))
                .order_by(Review.created_at.desc(), Review.id.desc())
                .offset(offset)
                .limit(limit)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reviews for teacher {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to list reviews: {str(e)}")

    def list_for_user(self, user_id: str) -> List[Review]:
        try:
            return cast(
                List[Review],
                self.db.query(Review)
                .filter(Review.user_id == user_id)
                .order_by(Review.created_at.desc(), Review.id.desc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reviews by user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list reviews: {str(e)}")

    def rating_stats(self, teacher_profile_id: str) -> Tuple[Optional[float], int]:
        """Average rating and count over the teacher's visible reviews."""
        try:
            average, total = (
                self.db.query(func.avg(Review.rating), func.count(Review.id))
                .filter(Review.teacher_profile_id == teacher_profile_id, Review.is_visible.is_(True))
                .one()
            )
            return (float(average) if average is not None else None), int(total or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing rating stats for {teacher_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to compute rating stats: {str(e)}")
