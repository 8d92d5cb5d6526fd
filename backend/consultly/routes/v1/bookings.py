# backend/consultly/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST /check-availability - Check if a time range is free
    GET "" - List bookings as customer (default) or teacher
    POST "" - Create a pending booking
    GET /{booking_id} - Booking details
    POST /{booking_id}/confirm - Teacher confirms
    POST /{booking_id}/cancel - Either party cancels
    POST /{booking_id}/reschedule - Customer moves the booking
    POST /{booking_id}/complete - Teacher marks completed
    POST /{booking_id}/refund - Admin refunds
"""

import asyncio
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_booking_service, get_current_active_user
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.booking import BookingStatus
from ...models.user import User
from ...schemas.booking import (
    AvailabilityCheckResponse,
    BookingCancel,
    BookingCreate,
    BookingListResponse,
    BookingReschedule,
    BookingResponse,
    CheckAvailabilityRequest,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.post("/check-availability", response_model=AvailabilityCheckResponse)
async def check_availability(
    check_data: CheckAvailabilityRequest,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> AvailabilityCheckResponse:
    try:
        result = await asyncio.to_thread(
            booking_service.check_availability,
            check_data.teacher_profile_id,
            check_data.booking_date,
            check_data.start_time,
            check_data.end_time,
        )
        return AvailabilityCheckResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    role: Literal["user", "teacher"] = Query("user"),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    status_value = status_filter.value if status_filter else None
    try:
        if role == "teacher":
            bookings = await asyncio.to_thread(
                booking_service.list_bookings_for_teacher, current_user, status_value
            )
        else:
            bookings = await asyncio.to_thread(
                booking_service.list_bookings_for_user, current_user, status_value
            )
    except DomainException as e:
        handle_domain_exception(e)
    items = [BookingResponse.model_validate(b) for b in bookings]
    return BookingListResponse(items=items, total=len(items), role=role)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Teacher or service not found"},
        409: {"description": "Time slot not available"},
    },
)
async def create_booking(
    booking_data: BookingCreate,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, current_user, booking_data
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_user, booking_id, current_user
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: str,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.confirm_booking, booking_id, current_user)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    cancel_data: Optional[BookingCancel] = Body(None),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking,
            booking_id,
            current_user,
            cancel_data.reason if cancel_data else None,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    reschedule_data: BookingReschedule,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.reschedule_booking,
            booking_id,
            current_user,
            reschedule_data.booking_date,
            reschedule_data.start_time,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.complete_booking, booking_id, current_user
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/refund", response_model=BookingResponse)
async def refund_booking(
    booking_id: str,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.refund_booking, booking_id, current_user)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)
