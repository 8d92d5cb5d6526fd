from datetime import datetime, timedelta, timezone

import pytest

from consultly.core.exceptions import (
    CalendarAuthExpiredException,
    CalendarSyncException,
    ForbiddenException,
    NotFoundException,
)
from consultly.models.calendar import GoogleCalendarBusySlot, GoogleCalendarToken
from consultly.services.calendar_sync_service import CalendarSyncService


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


ALL_DAY = {"id": "holiday", "start": {"date": "2030-01-07"}, "end": {"date": "2030-01-08"}}
TIMED = {
    "id": "meeting",
    "summary": "Board meeting",
    "start": {"dateTime": "2030-01-07T10:00:00+08:00"},
    "end": {"dateTime": "2030-01-07T11:00:00+08:00"},
}
TRANSPARENT = {
    "id": "reminder",
    "transparency": "transparent",
    "start": {"dateTime": "2030-01-07T12:00:00+08:00"},
    "end": {"dateTime": "2030-01-07T12:30:00+08:00"},
}
CANCELLED = {
    "id": "dropped",
    "status": "cancelled",
    "start": {"dateTime": "2030-01-07T13:00:00+08:00"},
    "end": {"dateTime": "2030-01-07T14:00:00+08:00"},
}


@pytest.fixture
def connected(db, teacher_profile) -> GoogleCalendarToken:
    token = GoogleCalendarToken(
        teacher_profile_id=teacher_profile.id,
        access_token="access",
        refresh_token="refresh",
        expires_at=_utcnow() + timedelta(hours=1),
        calendar_id="primary@fake.calendar",
    )
    db.add(token)
    db.commit()
    return token


def _slots(db, teacher_profile):
    return db.query(GoogleCalendarBusySlot).filter_by(teacher_profile_id=teacher_profile.id).all()


def test_only_timed_busy_events_are_cached(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    fake_calendar.events = [ALL_DAY, TIMED]

    assert calendar_service.sync_busy_slots(teacher_profile.id) == 1

    slots = _slots(db, teacher_profile)
    assert len(slots) == 1
    assert slots[0].event_id == "meeting"
    assert slots[0].start_time == datetime(2030, 1, 7, 10, 0)
    assert connected.last_synced_at is not None


def test_transparent_and_cancelled_events_are_free(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    fake_calendar.events = [TRANSPARENT, CANCELLED]
    assert calendar_service.sync_busy_slots(teacher_profile.id) == 0


def test_utc_event_is_stored_in_service_timezone(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    fake_calendar.events = [
        {
            "id": "utc",
            "start": {"dateTime": "2030-01-07T02:00:00Z"},
            "end": {"dateTime": "2030-01-07T03:00:00Z"},
        }
    ]
    calendar_service.sync_busy_slots(teacher_profile.id)
    assert _slots(db, teacher_profile)[0].start_time == datetime(2030, 1, 7, 10, 0)


def test_resync_replaces_the_cache(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    fake_calendar.events = [TIMED]
    calendar_service.sync_busy_slots(teacher_profile.id)
    calendar_service.sync_busy_slots(teacher_profile.id)
    assert len(_slots(db, teacher_profile)) == 1

    fake_calendar.events = []
    calendar_service.sync_busy_slots(teacher_profile.id)
    assert _slots(db, teacher_profile) == []


def test_failed_fetch_keeps_previous_cache(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    fake_calendar.events = [TIMED]
    calendar_service.sync_busy_slots(teacher_profile.id)

    fake_calendar.fail_list = True
    with pytest.raises(CalendarSyncException):
        calendar_service.sync_busy_slots(teacher_profile.id)

    assert len(_slots(db, teacher_profile)) == 1


def test_expiring_token_is_refreshed(db, calendar_service, teacher_profile, connected) -> None:
    connected.expires_at = _utcnow() + timedelta(minutes=1)
    db.commit()

    access_token = calendar_service.ensure_valid_token(teacher_profile.id)

    assert access_token.startswith("fake-access-")
    assert connected.access_token == access_token
    assert connected.expires_at > _utcnow() + timedelta(minutes=30)
    assert connected.refresh_token == "refresh"


def test_fresh_token_is_not_refreshed(calendar_service, teacher_profile, connected) -> None:
    assert calendar_service.ensure_valid_token(teacher_profile.id) == "access"


def test_refresh_failure_deactivates_connection(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    connected.expires_at = _utcnow() - timedelta(minutes=5)
    db.commit()
    fake_calendar.fail_refresh = True

    with pytest.raises(CalendarAuthExpiredException):
        calendar_service.sync_busy_slots(teacher_profile.id)

    db.refresh(connected)
    assert connected.is_active is False
    assert calendar_service.get_status(teacher_profile.id)["is_active"] is False


def test_sync_without_connection_is_not_found(calendar_service, teacher_profile) -> None:
    with pytest.raises(NotFoundException):
        calendar_service.sync_busy_slots(teacher_profile.id)


def test_oauth_callback_stores_token_and_syncs(
    db, calendar_service, fake_calendar, teacher_profile
) -> None:
    fake_calendar.events = [TIMED]

    synced = calendar_service.handle_oauth_callback("auth-code", teacher_profile.id)

    assert synced == 1
    token = db.query(GoogleCalendarToken).filter_by(teacher_profile_id=teacher_profile.id).one()
    assert token.calendar_id == "primary@fake.calendar"
    assert token.is_active is True


def test_oauth_callback_for_unknown_state(calendar_service) -> None:
    with pytest.raises(NotFoundException):
        calendar_service.handle_oauth_callback("auth-code", "01J00000000000000000000000")


def test_auth_url_requires_teacher(calendar_service, customer, teacher, teacher_profile) -> None:
    with pytest.raises(ForbiddenException):
        calendar_service.get_auth_url(customer)
    assert f"state={teacher_profile.id}" in calendar_service.get_auth_url(teacher)


def test_disconnect_is_idempotent(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    fake_calendar.events = [TIMED]
    calendar_service.sync_busy_slots(teacher_profile.id)

    calendar_service.disconnect(teacher_profile.id)
    calendar_service.disconnect(teacher_profile.id)

    assert _slots(db, teacher_profile) == []
    assert calendar_service.get_status(teacher_profile.id) == {
        "connected": False,
        "is_active": False,
        "busy_slot_count": 0,
    }


def test_busy_conflict_uses_half_open_intervals(
    db, calendar_service, fake_calendar, teacher_profile, connected
) -> None:
    fake_calendar.events = [TIMED]
    calendar_service.sync_busy_slots(teacher_profile.id)

    assert calendar_service.has_busy_conflict(
        teacher_profile.id, datetime(2030, 1, 7, 10, 30), datetime(2030, 1, 7, 11, 30)
    )
    assert not calendar_service.has_busy_conflict(
        teacher_profile.id, datetime(2030, 1, 7, 11, 0), datetime(2030, 1, 7, 12, 0)
    )


def test_sync_all_continues_past_failures(db, fake_calendar, teacher_profile, connected) -> None:
    from consultly.models.teacher_profile import TeacherProfile
    from consultly.models.user import User

    second_user = User(email="second@example.com", name="Second", role="teacher")
    db.add(second_user)
    db.commit()
    second_profile = TeacherProfile(user_id=second_user.id, display_name="Second")
    db.add(second_profile)
    db.commit()
    db.add(
        GoogleCalendarToken(
            teacher_profile_id=second_profile.id,
            access_token="a",
            refresh_token="r",
            expires_at=_utcnow() - timedelta(minutes=1),
            calendar_id="primary",
        )
    )
    db.commit()
    fake_calendar.fail_refresh = True
    fake_calendar.events = [TIMED]

    summary = CalendarSyncService(db, fake_calendar).sync_all_active()

    assert summary == {"total": 2, "synced": 1, "failed": 1}
