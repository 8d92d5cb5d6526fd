# backend/consultly/routes/v1/notifications.py
"""In-app notification inbox - API v1."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_current_active_user, get_notification_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.user import User
from ...schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from ...services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications-v1"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    items = await asyncio.to_thread(
        notification_service.list_for_user,
        current_user.id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    unread = await asyncio.to_thread(notification_service.unread_count, current_user.id)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        unread_count=unread,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> UnreadCountResponse:
    count = await asyncio.to_thread(notification_service.unread_count, current_user.id)
    return UnreadCountResponse(unread_count=count)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    updated = await asyncio.to_thread(notification_service.mark_all_read, current_user.id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    try:
        notification = await asyncio.to_thread(
            notification_service.mark_read, current_user.id, notification_id
        )
        return NotificationResponse.model_validate(notification)
    except DomainException as e:
        handle_domain_exception(e)
