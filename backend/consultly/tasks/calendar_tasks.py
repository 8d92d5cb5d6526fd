# backend/consultly/tasks/calendar_tasks.py
"""
Periodic and on-demand Google Calendar sync tasks.
"""

from __future__ import annotations

import logging
from typing import Dict

from consultly.core.exceptions import DomainException
from consultly.database import get_db_session
from consultly.services.calendar_sync_service import CalendarSyncService
from consultly.tasks.celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    base=BaseTask,
    name="consultly.tasks.calendar_tasks.sync_all_calendars",
    ignore_result=False,
)
def sync_all_calendars() -> Dict[str, int]:
    """Sync busy slots for every active connection; one failure never stops the run."""
    with get_db_session() as db:
        summary = CalendarSyncService(db).sync_all_active()
    logger.info(
        "[CALENDAR] Nightly sync finished: %d synced, %d failed of %d",
        summary["synced"],
        summary["failed"],
        summary["total"],
    )
    return summary


@celery_app.task(
    base=BaseTask,
    name="consultly.tasks.calendar_tasks.sync_teacher_calendar",
    ignore_result=False,
)
def sync_teacher_calendar(teacher_profile_id: str) -> Dict[str, object]:
    with get_db_session() as db:
        try:
            count = CalendarSyncService(db).sync_busy_slots(teacher_profile_id)
        except DomainException as exc:
            logger.warning(f"[CALENDAR] Sync for {teacher_profile_id} failed: {exc.message}")
            return {"teacher_profile_id": teacher_profile_id, "status": "failed", "error": exc.code}
    return {"teacher_profile_id": teacher_profile_id, "status": "success", "synced_slots": count}
