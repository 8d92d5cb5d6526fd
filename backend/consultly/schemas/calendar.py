# backend/consultly/schemas/calendar.py
"""
Google Calendar schemas.

``CalendarEvent`` parses raw events from the Calendar API at the client
boundary so nothing past the integration layer touches untyped dicts.
"""

from __future__ import annotations

from datetime import date as date_type, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field

from ._strict_base import StrictModel


class EventTime(BaseModel):
    """Either ``date`` (all-day event) or ``dateTime`` (timed event)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    date: Optional[date_type] = None
    date_time: Optional[datetime] = Field(default=None, alias="dateTime")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")

    def to_local_naive(self, tz_name: str) -> datetime:
        """Wall-clock datetime in ``tz_name`` with tzinfo stripped."""
        if self.date_time is None:
            raise ValueError("All-day events have no time of day")
        value = self.date_time
        if value.tzinfo is None:
            source_tz = ZoneInfo(self.time_zone) if self.time_zone else timezone.utc
            value = value.replace(tzinfo=source_tz)
        return value.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


class CalendarEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    summary: Optional[str] = None
    status: Optional[str] = None
    transparency: Optional[str] = None
    start: EventTime
    end: EventTime

    @property
    def is_all_day(self) -> bool:
        return self.start.date_time is None

    @property
    def is_busy(self) -> bool:
        """Timed, opaque, not cancelled: the only events that block bookings."""
        if self.is_all_day or self.end.date_time is None:
            return False
        if (self.transparency or "").lower() == "transparent":
            return False
        return (self.status or "").lower() != "cancelled"


class BusySlotResponse(StrictModel):
    event_id: str
    event_title: Optional[str] = None
    start_time: datetime
    end_time: datetime


class CalendarAuthUrlResponse(StrictModel):
    auth_url: str


class CalendarSyncResponse(StrictModel):
    teacher_profile_id: str
    synced_slots: int


class CalendarStatusResponse(StrictModel):
    connected: bool
    is_active: bool = False
    calendar_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None
    busy_slot_count: int = 0
