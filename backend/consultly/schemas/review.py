# backend/consultly/schemas/review.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..models.review import MAX_RATING, MIN_RATING
from ._strict_base import StrictModel, StrictRequestModel


class ReviewCreate(StrictRequestModel):
    teacher_profile_id: str = Field(..., description="Teacher being reviewed")
    booking_id: Optional[str] = Field(None, description="Booking the review is about")
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewReply(StrictRequestModel):
    reply: str = Field(..., min_length=1, max_length=2000)

    @field_validator("reply")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reply must not be blank")
        return v.strip()


class ReviewResponse(StrictModel):
    id: str
    user_id: str
    teacher_profile_id: str
    booking_id: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    is_verified: bool
    teacher_reply: Optional[str] = None
    teacher_reply_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReviewListResponse(StrictModel):
    items: List[ReviewResponse]
    total_reviews: int
    average_rating: float
