# backend/consultly/routes/v1/calendar.py
"""
Google Calendar routes - API v1

Endpoints:
    GET /auth-url - OAuth consent URL for the current teacher
    GET /callback - OAuth redirect target; stores the grant and syncs
    POST /sync - Manual busy-slot sync
    DELETE "" - Disconnect and drop cached busy slots
    GET /status - Connection state
    GET /busy-slots - Cached busy slots in a window
"""

import asyncio
from datetime import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies import get_calendar_sync_service, get_current_active_user
from ...core.exceptions import DomainException, ValidationException, handle_domain_exception
from ...models.user import User
from ...schemas.calendar import (
    BusySlotResponse,
    CalendarAuthUrlResponse,
    CalendarStatusResponse,
    CalendarSyncResponse,
)
from ...services.calendar_sync_service import CalendarSyncService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar-v1"])


@router.get("/auth-url", response_model=CalendarAuthUrlResponse)
async def get_auth_url(
    current_user: User = Depends(get_current_active_user),
    calendar_service: CalendarSyncService = Depends(get_calendar_sync_service),
) -> CalendarAuthUrlResponse:
    try:
        url = await asyncio.to_thread(calendar_service.get_auth_url, current_user)
        return CalendarAuthUrlResponse(auth_url=url)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/callback", response_model=CalendarSyncResponse)
async def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    calendar_service: CalendarSyncService = Depends(get_calendar_sync_service),
) -> CalendarSyncResponse:
    try:
        if error:
            raise ValidationException(
                "Google Calendar authorization was denied", details={"error": error}
            )
        if not code or not state:
            raise ValidationException("Missing code or state")
        synced = await asyncio.to_thread(calendar_service.handle_oauth_callback, code, state)
        return CalendarSyncResponse(teacher_profile_id=state, synced_slots=synced)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/sync", response_model=CalendarSyncResponse)
async def sync_calendar(
    current_user: User = Depends(get_current_active_user),
    calendar_service: CalendarSyncService = Depends(get_calendar_sync_service),
) -> CalendarSyncResponse:
    try:
        profile = await asyncio.to_thread(calendar_service.require_teacher_profile, current_user)
        synced = await asyncio.to_thread(calendar_service.sync_busy_slots, profile.id)
        return CalendarSyncResponse(teacher_profile_id=profile.id, synced_slots=synced)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def disconnect_calendar(
    current_user: User = Depends(get_current_active_user),
    calendar_service: CalendarSyncService = Depends(get_calendar_sync_service),
) -> Response:
    try:
        profile = await asyncio.to_thread(calendar_service.require_teacher_profile, current_user)
        await asyncio.to_thread(calendar_service.disconnect, profile.id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/status", response_model=CalendarStatusResponse)
async def calendar_status(
    current_user: User = Depends(get_current_active_user),
    calendar_service: CalendarSyncService = Depends(get_calendar_sync_service),
) -> CalendarStatusResponse:
    try:
        profile = await asyncio.to_thread(calendar_service.require_teacher_profile, current_user)
        data = await asyncio.to_thread(calendar_service.get_status, profile.id)
        return CalendarStatusResponse(**data)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/busy-slots", response_model=List[BusySlotResponse])
async def list_busy_slots(
    start: datetime = Query(...),
    end: datetime = Query(...),
    current_user: User = Depends(get_current_active_user),
    calendar_service: CalendarSyncService = Depends(get_calendar_sync_service),
) -> List[BusySlotResponse]:
    try:
        if start >= end:
            raise ValidationException("start must be before end")
        profile = await asyncio.to_thread(calendar_service.require_teacher_profile, current_user)
        slots = await asyncio.to_thread(calendar_service.get_busy_slots, profile.id, start, end)
        return [BusySlotResponse.model_validate(s) for s in slots]
    except DomainException as e:
        handle_domain_exception(e)
