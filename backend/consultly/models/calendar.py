# backend/consultly/models/calendar.py
"""
Google Calendar connection state.

GoogleCalendarToken holds one OAuth grant per teacher. GoogleCalendarBusySlot
is a local cache of timed, opaque events from the teacher's primary calendar
and is fully replaced on every sync. Busy-slot datetimes are naive wall-clock
values in the service timezone, matching booking dates and times.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class GoogleCalendarToken(Base):
    __tablename__ = "google_calendar_tokens"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_profile_id = Column(
        String(26),
        ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    calendar_id = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_synced_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"<GoogleCalendarToken teacher={self.teacher_profile_id} {state}>"


class GoogleCalendarBusySlot(Base):
    __tablename__ = "google_calendar_busy_slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_profile_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    event_id = Column(String(255), nullable=False)
    event_title = Column(String(500), nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_busy_slots_teacher_window", "teacher_profile_id", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return f"<GoogleCalendarBusySlot {self.event_id} {self.start_time}-{self.end_time}>"
