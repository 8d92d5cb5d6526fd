# backend/consultly/routes/v1/teachers.py
"""
Teacher schedule routes - API v1

Endpoints:
    PUT /me/availability - Replace the current teacher's weekly schedule
    GET /{teacher_profile_id}/availability - Weekly schedule (public)
    GET /{teacher_profile_id}/slots - Bookable starts for a service on a date
    GET /{teacher_profile_id}/reviews - Visible reviews with rating stats
"""

import asyncio
from datetime import date
import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_current_active_user,
    get_review_service,
)
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.user import User
from ...schemas.availability import (
    AvailabilityResponse,
    AvailabilityRuleResponse,
    AvailabilityUpdate,
)
from ...schemas.booking import AvailableSlotsResponse
from ...schemas.review import ReviewListResponse, ReviewResponse
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["teachers-v1"])


@router.put("/me/availability", response_model=AvailabilityResponse)
async def set_my_availability(
    payload: AvailabilityUpdate,
    current_user: User = Depends(get_current_active_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        rules = await asyncio.to_thread(
            availability_service.set_availability, current_user, payload.rules
        )
    except DomainException as e:
        handle_domain_exception(e)
    teacher_profile_id = rules[0].teacher_profile_id if rules else ""
    if not teacher_profile_id and current_user.teacher_profile is not None:
        teacher_profile_id = current_user.teacher_profile.id
    return AvailabilityResponse(
        teacher_profile_id=teacher_profile_id,
        rules=[AvailabilityRuleResponse.model_validate(r) for r in rules],
    )


@router.get("/{teacher_profile_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    teacher_profile_id: str,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        rules = await asyncio.to_thread(availability_service.get_availability, teacher_profile_id)
    except DomainException as e:
        handle_domain_exception(e)
    return AvailabilityResponse(
        teacher_profile_id=teacher_profile_id,
        rules=[AvailabilityRuleResponse.model_validate(r) for r in rules],
    )


@router.get("/{teacher_profile_id}/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    teacher_profile_id: str,
    service_id: str = Query(...),
    target_date: date = Query(..., alias="date"),
    booking_service: BookingService = Depends(get_booking_service),
) -> AvailableSlotsResponse:
    try:
        slots = await asyncio.to_thread(
            booking_service.get_available_slots, teacher_profile_id, service_id, target_date
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AvailableSlotsResponse(
        teacher_profile_id=teacher_profile_id,
        service_id=service_id,
        date=target_date,
        slots=slots,
    )


@router.get("/{teacher_profile_id}/reviews", response_model=ReviewListResponse)
async def list_teacher_reviews(
    teacher_profile_id: str,
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewListResponse:
    try:
        profile = await asyncio.to_thread(review_service.get_teacher_profile, teacher_profile_id)
        reviews = await asyncio.to_thread(
            review_service.list_for_teacher, teacher_profile_id, limit=limit, offset=offset
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total_reviews=profile.total_reviews or 0,
        average_rating=float(profile.average_rating or 0),
    )
