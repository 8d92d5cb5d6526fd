# backend/consultly/routes/v1/reviews.py
"""
Review routes - API v1

Endpoints:
    POST "" - Review a teacher, optionally for a specific booking
    GET /me - Reviews written by the current user
    POST /{review_id}/reply - Teacher reply to a review of them

Public listing lives under GET /teachers/{teacher_profile_id}/reviews.
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, status

from ...api.dependencies import get_current_active_user, get_review_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.user import User
from ...schemas.review import ReviewCreate, ReviewReply, ReviewResponse
from ...services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews-v1"])


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Booking already reviewed"}},
)
async def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    try:
        review = await asyncio.to_thread(review_service.create_review, current_user, payload)
        return ReviewResponse.model_validate(review)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/me", response_model=List[ReviewResponse])
async def my_reviews(
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service),
) -> List[ReviewResponse]:
    reviews = await asyncio.to_thread(review_service.list_for_user, current_user)
    return [ReviewResponse.model_validate(r) for r in reviews]


@router.post("/{review_id}/reply", response_model=ReviewResponse)
async def reply_to_review(
    review_id: str,
    payload: ReviewReply,
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    try:
        review = await asyncio.to_thread(
            review_service.reply_to_review, review_id, current_user, payload.reply
        )
        return ReviewResponse.model_validate(review)
    except DomainException as e:
        handle_domain_exception(e)
