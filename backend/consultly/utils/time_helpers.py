"""Helpers for the "HH:MM" wall-clock strings used by schedules and bookings."""

from __future__ import annotations

from datetime import date, datetime, time
import re

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def is_valid_hhmm(value: str) -> bool:
    return bool(_HHMM_RE.match(value or ""))


def to_minutes(hhmm: str) -> int:
    """Minutes since midnight for an "HH:MM" string."""
    if not is_valid_hhmm(hhmm):
        raise ValueError(f"Invalid time '{hhmm}', expected HH:MM")
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def format_hhmm(total_minutes: int) -> str:
    """Inverse of ``to_minutes``; values past midnight are not wrapped."""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def add_minutes(hhmm: str, minutes: int) -> str:
    return format_hhmm(to_minutes(hhmm) + minutes)


def parse_hhmm(hhmm: str) -> time:
    total = to_minutes(hhmm)
    return time(total // 60, total % 60)


def combine(day: date, hhmm: str) -> datetime:
    """Naive datetime for a wall-clock time on ``day`` (service timezone)."""
    return datetime.combine(day, parse_hhmm(hhmm))


def day_of_week_sunday_zero(day: date) -> int:
    """0 = Sunday ... 6 = Saturday (Python's weekday() is Monday = 0)."""
    return (day.weekday() + 1) % 7
