# backend/consultly/services/calendar_sync_service.py
"""
Calendar Sync Service for Consultly

Keeps a local cache of each teacher's busy time from Google Calendar and
keeps the OAuth grant usable.

Sync is a full replace. Events are fetched first; only when the fetch
succeeds are the cached rows deleted and the new set inserted, both inside
one transaction, so a failed sync leaves the previous cache in place rather
than an empty one.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    CalendarAuthExpiredException,
    CalendarSyncException,
    DomainException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..integrations.google_calendar_client import (
    FakeGoogleCalendarClient,
    GoogleCalendarClient,
    GoogleCalendarError,
)
from ..models.calendar import GoogleCalendarBusySlot, GoogleCalendarToken
from ..models.teacher_profile import TeacherProfile
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from .base import BaseService
from .conflict_checker import intervals_overlap

logger = logging.getLogger(__name__)


def build_google_calendar_client() -> GoogleCalendarClient:
    """Real client when credentials are configured, the in-memory fake otherwise outside production."""
    if settings.google_calendar_fake or (
        not settings.google_client_id and not settings.is_production
    ):
        return FakeGoogleCalendarClient()
    return GoogleCalendarClient(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        redirect_uri=settings.google_redirect_uri,
        scope=settings.google_calendar_scope,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CalendarSyncService(BaseService):
    def __init__(
        self,
        db: Session,
        client: Optional[GoogleCalendarClient] = None,
        *,
        sync_window_days: Optional[int] = None,
        refresh_margin_minutes: Optional[int] = None,
        timezone_name: Optional[str] = None,
    ):
        super().__init__(db)
        self._client = client
        self.token_repository = RepositoryFactory.create_calendar_token_repository(db)
        self.busy_slot_repository = RepositoryFactory.create_calendar_busy_slot_repository(db)
        self.teacher_repository = RepositoryFactory.create_base_repository(db, TeacherProfile)
        self.sync_window = timedelta(days=sync_window_days or settings.calendar_sync_window_days)
        self.refresh_margin = timedelta(
            minutes=(
                refresh_margin_minutes
                if refresh_margin_minutes is not None
                else settings.calendar_token_refresh_margin_minutes
            )
        )
        self.timezone_name = timezone_name or settings.service_timezone

    @property
    def client(self) -> GoogleCalendarClient:
        if self._client is None:
            self._client = build_google_calendar_client()
        return self._client

    def _now(self) -> datetime:
        return _utcnow()

    def require_teacher_profile(self, actor: User) -> TeacherProfile:
        profile = self.teacher_repository.find_one_by(user_id=actor.id)
        if profile is None:
            raise ForbiddenException("Only teachers can connect a calendar")
        return profile

    def _get_token(self, teacher_profile_id: str) -> GoogleCalendarToken:
        token = self.token_repository.get_by_teacher(teacher_profile_id)
        if token is None or not token.is_active:
            raise NotFoundException(
                "Google Calendar is not connected",
                code="CALENDAR_NOT_CONNECTED",
                details={"teacher_profile_id": teacher_profile_id},
            )
        return token

    @BaseService.measure_operation("get_calendar_auth_url")
    def get_auth_url(self, actor: User) -> str:
        profile = self.require_teacher_profile(actor)
        return self.client.generate_auth_url(state=profile.id)

    @BaseService.measure_operation("handle_calendar_oauth_callback")
    def handle_oauth_callback(self, code: str, state: str) -> int:
        """
        Finish the OAuth flow for the teacher named by ``state`` and sync once.

        Returns:
            Number of busy slots cached by the initial sync
        """
        profile = self.teacher_repository.get_by_id(state)
        if profile is None:
            raise NotFoundException("Teacher profile not found", details={"state": state})

        try:
            grant = self.client.exchange_code(code)
        except GoogleCalendarError as exc:
            raise ValidationException(
                "Could not complete Google Calendar authorization",
                code="CALENDAR_OAUTH_FAILED",
                details={"error": str(exc)},
            ) from exc
        if not grant.refresh_token:
            raise ValidationException(
                "Google did not return a refresh token, please reconnect and grant offline access",
                code="CALENDAR_NO_REFRESH_TOKEN",
            )

        try:
            calendar_id = self.client.get_primary_calendar_id(grant.access_token)
        except GoogleCalendarError as exc:
            raise CalendarSyncException("Could not load Google calendars") from exc
        if not calendar_id:
            raise CalendarSyncException("No primary Google calendar found")

        with self.transaction():
            self.token_repository.upsert(
                profile.id,
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
                expires_at=grant.expires_at,
                calendar_id=calendar_id,
            )
        self.logger.info(
            "Google Calendar connected", extra={"teacher_profile_id": profile.id}
        )
        return self.sync_busy_slots(profile.id)

    @BaseService.measure_operation("ensure_valid_calendar_token")
    def ensure_valid_token(self, teacher_profile_id: str) -> str:
        """Access token valid for at least the refresh margin, refreshing if needed."""
        token = self._get_token(teacher_profile_id)
        if token.expires_at - self._now() >= self.refresh_margin:
            return token.access_token

        try:
            grant = self.client.refresh_access_token(token.refresh_token)
        except GoogleCalendarError as exc:
            self.logger.error(
                "Calendar token refresh failed",
                extra={"teacher_profile_id": teacher_profile_id, "error": str(exc)},
            )
            with self.transaction():
                token.is_active = False
            prometheus_metrics.record_calendar_sync("auth_expired")
            raise CalendarAuthExpiredException(teacher_profile_id) from exc

        with self.transaction():
            token.access_token = grant.access_token
            token.expires_at = grant.expires_at
            if grant.refresh_token:
                token.refresh_token = grant.refresh_token
        return grant.access_token

    @BaseService.measure_operation("sync_busy_slots")
    def sync_busy_slots(self, teacher_profile_id: str) -> int:
        """
        Replace the cached busy slots with the next sync window of timed, opaque events.

        Returns:
            Number of busy slots now cached
        """
        access_token = self.ensure_valid_token(teacher_profile_id)
        token = self._get_token(teacher_profile_id)

        now = self._now()
        try:
            events = self.client.list_events(
                access_token,
                token.calendar_id,
                time_min=now.replace(tzinfo=timezone.utc),
                time_max=(now + self.sync_window).replace(tzinfo=timezone.utc),
            )
        except GoogleCalendarError as exc:
            self.logger.error(
                "Calendar sync failed",
                extra={"teacher_profile_id": teacher_profile_id, "error": str(exc)},
            )
            prometheus_metrics.record_calendar_sync("error")
            raise CalendarSyncException(
                "Failed to fetch Google Calendar events",
                details={"teacher_profile_id": teacher_profile_id},
            ) from exc

        rows = [
            {
                "teacher_profile_id": teacher_profile_id,
                "event_id": event.id,
                "event_title": event.summary,
                "start_time": event.start.to_local_naive(self.timezone_name),
                "end_time": event.end.to_local_naive(self.timezone_name),
            }
            for event in events
            if event.is_busy
        ]

        with self.transaction():
            self.busy_slot_repository.delete_for_teacher(teacher_profile_id)
            if rows:
                self.busy_slot_repository.bulk_create(rows)
            token.last_synced_at = now

        prometheus_metrics.record_calendar_sync("success")
        self.logger.info(
            f"Synced {len(rows)} busy slots ({len(events)} events) for teacher {teacher_profile_id}"
        )
        return len(rows)

    @BaseService.measure_operation("disconnect_calendar")
    def disconnect(self, teacher_profile_id: str) -> None:
        """Remove the grant and every cached busy slot; safe to call repeatedly."""
        with self.transaction():
            slots = self.busy_slot_repository.delete_for_teacher(teacher_profile_id)
            tokens = self.token_repository.delete_for_teacher(teacher_profile_id)
        self.logger.info(
            "Google Calendar disconnected",
            extra={
                "teacher_profile_id": teacher_profile_id,
                "deleted_slots": slots,
                "deleted_tokens": tokens,
            },
        )

    def get_busy_slots(
        self, teacher_profile_id: str, start: datetime, end: datetime
    ) -> List[GoogleCalendarBusySlot]:
        return self.busy_slot_repository.get_overlapping(teacher_profile_id, start, end)

    def has_busy_conflict(self, teacher_profile_id: str, start: datetime, end: datetime) -> bool:
        """True if a cached busy slot overlaps ``[start, end)``; no connection means no conflict."""
        return any(
            intervals_overlap(start, end, slot.start_time, slot.end_time)
            for slot in self.get_busy_slots(teacher_profile_id, start, end)
        )

    def get_status(self, teacher_profile_id: str) -> Dict[str, Any]:
        token = self.token_repository.get_by_teacher(teacher_profile_id)
        if token is None:
            return {"connected": False, "is_active": False, "busy_slot_count": 0}
        return {
            "connected": True,
            "is_active": bool(token.is_active),
            "calendar_id": token.calendar_id,
            "expires_at": token.expires_at,
            "last_synced_at": token.last_synced_at,
            "busy_slot_count": self.busy_slot_repository.count(
                teacher_profile_id=teacher_profile_id
            ),
        }

    @BaseService.measure_operation("sync_all_calendars")
    def sync_all_active(self) -> Dict[str, int]:
        """Sync every active connection; one teacher's failure never stops the rest."""
        teacher_ids = [token.teacher_profile_id for token in self.token_repository.list_active()]
        synced = failed = 0
        for teacher_profile_id in teacher_ids:
            try:
                self.sync_busy_slots(teacher_profile_id)
                synced += 1
            except DomainException as exc:
                failed += 1
                self.logger.error(
                    "Scheduled calendar sync failed",
                    extra={
                        "teacher_profile_id": teacher_profile_id,
                        "code": exc.code,
                        "error": exc.message,
                    },
                )
            except Exception:
                failed += 1
                self.db.rollback()
                self.logger.exception(
                    "Unexpected error syncing calendar",
                    extra={"teacher_profile_id": teacher_profile_id},
                )
        return {"total": len(teacher_ids), "synced": synced, "failed": failed}
