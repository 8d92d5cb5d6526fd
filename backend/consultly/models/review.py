# backend/consultly/models/review.py
"""
Customer reviews of a teacher.

A review may point at the booking it is about; each booking can be reviewed
once. ``is_verified`` marks reviews written by the booking's own customer
after the session completed.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

MIN_RATING = 1
MAX_RATING = 5


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    teacher_profile_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_visible = Column(Boolean, nullable=False, default=True)
    teacher_reply = Column(Text, nullable=True)
    teacher_reply_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User")
    teacher_profile = relationship("TeacherProfile")
    booking = relationship("Booking")

    __table_args__ = (
        CheckConstraint(
            f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}", name="check_review_rating_range"
        ),
        Index("idx_reviews_teacher_visible", "teacher_profile_id", "is_visible"),
    )

    def __repr__(self) -> str:
        return f"<Review {self.id}: teacher={self.teacher_profile_id} rating={self.rating}>"
