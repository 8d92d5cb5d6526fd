# backend/consultly/services/review_service.py
"""
Review Service for Consultly

Customers rate teachers from 1 to 5. A review tied to a booking is accepted
once per booking and counts as verified when the reviewer is the booking's
customer and the session is completed. The teacher's ``total_reviews`` and
``average_rating`` are recomputed in the same transaction as the insert.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.enums import NotificationType
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from ..models.booking import Booking, BookingStatus
from ..models.review import Review
from ..models.teacher_profile import TeacherProfile
from ..models.user import User
from ..repositories import RepositoryFactory
from ..schemas.review import ReviewCreate
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

ALREADY_REVIEWED_MESSAGE = "You have already reviewed this booking"
RATING_PLACES = Decimal("0.01")


class ReviewService(BaseService):
    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.repository = RepositoryFactory.create_review_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.teacher_repository = RepositoryFactory.create_base_repository(db, TeacherProfile)

    @BaseService.measure_operation("create_review")
    def create_review(self, actor: User, data: ReviewCreate) -> Review:
        """
        Store a review and refresh the teacher's rating stats.

        Raises:
            NotFoundException: Unknown teacher or booking
            ValidationException: Booking belongs to another teacher
            ConflictException: Booking already reviewed
        """
        try:
            with self.transaction():
                profile = self.teacher_repository.get_by_id(data.teacher_profile_id)
                if profile is None or not profile.is_active:
                    raise NotFoundException("Teacher not found")

                is_verified = False
                if data.booking_id:
                    booking = self._get_reviewable_booking(data.booking_id, profile.id)
                    is_verified = (
                        booking.user_id == actor.id
                        and booking.status == BookingStatus.COMPLETED.value
                    )

                review = self.repository.create(
                    user_id=actor.id,
                    teacher_profile_id=profile.id,
                    booking_id=data.booking_id,
                    rating=data.rating,
                    comment=data.comment,
                    is_verified=is_verified,
                )
                self._refresh_rating_stats(profile)
        except IntegrityError as exc:
            if not data.booking_id or "booking_id" not in str(exc.orig):
                self.logger.error(f"Review insert rejected: {exc.orig}")
                raise ServiceException("Review could not be saved") from exc
            # Two submissions for one booking raced past the lookup
            raise ConflictException(
                ALREADY_REVIEWED_MESSAGE, code="REVIEW_EXISTS", details={"booking_id": data.booking_id}
            ) from exc

        self.log_operation("create_review", review_id=review.id, teacher_profile_id=profile.id)
        self.notification_service.notify(
            profile.user_id,
            NotificationType.REVIEW_NEW,
            "New review",
            f"You received a {review.rating}-star review",
            related_booking_id=review.booking_id,
        )
        return review

    @BaseService.measure_operation("reply_to_review")
    def reply_to_review(self, review_id: str, actor: User, reply: str) -> Review:
        with self.transaction():
            review = self.repository.get_by_id(review_id)
            if review is None:
                raise NotFoundException("Review not found", details={"review_id": review_id})
            profile = review.teacher_profile
            if profile is None or profile.user_id != actor.id:
                raise ForbiddenException("Only the reviewed teacher can reply")
            review.teacher_reply = reply
            review.teacher_reply_at = datetime.now(timezone.utc)
            self.repository.flush()
        return review

    def list_for_teacher(
        self, teacher_profile_id: str, *, limit: int = 20, offset: int = 0
    ) -> List[Review]:
        return self.repository.list_visible_for_teacher(
            teacher_profile_id, limit=limit, offset=offset
        )

    def list_for_user(self, actor: User) -> List[Review]:
        return self.repository.list_for_user(actor.id)

    def get_teacher_profile(self, teacher_profile_id: str) -> TeacherProfile:
        profile = self.teacher_repository.get_by_id(teacher_profile_id)
        if profile is None:
            raise NotFoundException("Teacher not found")
        return profile

    def _get_reviewable_booking(self, booking_id: str, teacher_profile_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        if booking.teacher_profile_id != teacher_profile_id:
            raise ValidationException("Booking is not with this teacher")
        if self.repository.get_by_booking(booking_id) is not None:
            raise ConflictException(
                ALREADY_REVIEWED_MESSAGE, code="REVIEW_EXISTS", details={"booking_id": booking_id}
            )
        return booking

    def _refresh_rating_stats(self, profile: TeacherProfile) -> None:
        average, total = self.repository.rating_stats(profile.id)
        profile.total_reviews = total
        profile.average_rating = Decimal(str(average or 0)).quantize(
            RATING_PLACES, rounding=ROUND_HALF_UP
        )
        self.teacher_repository.flush()
