# backend/consultly/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for Consultly.
"""

from __future__ import annotations

from typing import Any, Dict

from celery.schedules import crontab

CELERYBEAT_SCHEDULE: Dict[str, Dict[str, Any]] = {
    # Nightly refresh of every active Google Calendar connection (service timezone)
    "sync-all-google-calendars": {
        "task": "consultly.tasks.calendar_tasks.sync_all_calendars",
        "schedule": crontab(hour=3, minute=0),
        "options": {"queue": "calendar"},
    },
}


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    return dict(CELERYBEAT_SCHEDULE)
