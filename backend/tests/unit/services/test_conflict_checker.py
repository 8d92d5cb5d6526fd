from datetime import datetime

import pytest

from consultly.models.booking import BookingStatus
from consultly.services.conflict_checker import ConflictChecker, intervals_overlap

from ...conftest import MONDAY


@pytest.mark.parametrize(
    "a,b,expected",
    [
        (("10:00", "11:00"), ("10:30", "11:30"), True),
        (("10:00", "11:00"), ("11:00", "12:00"), False),
        (("10:00", "12:00"), ("10:30", "11:00"), True),
        (("09:00", "10:00"), ("11:00", "12:00"), False),
    ],
)
def test_overlap_is_symmetric(a, b, expected) -> None:
    assert intervals_overlap(*a, *b) is expected
    assert intervals_overlap(*b, *a) is expected


def test_overlap_works_on_datetimes() -> None:
    assert intervals_overlap(
        datetime(2030, 1, 7, 10), datetime(2030, 1, 7, 11),
        datetime(2030, 1, 7, 10, 59), datetime(2030, 1, 7, 12),
    )


def test_confirmed_booking_blocks_overlap_but_not_touching(db, teacher_profile, make_booking) -> None:
    make_booking("10:00", "11:00", status=BookingStatus.CONFIRMED)
    checker = ConflictChecker(db)

    conflicts = checker.check_booking_conflicts(teacher_profile.id, MONDAY, "10:30", "11:30")
    assert len(conflicts) == 1
    assert conflicts[0]["start_time"] == "10:00"

    assert checker.check_time_conflicts(teacher_profile.id, MONDAY, "11:00", "12:00") is False


@pytest.mark.parametrize(
    "status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.REFUNDED]
)
def test_closed_bookings_never_conflict(db, teacher_profile, make_booking, status) -> None:
    make_booking("10:00", "11:00", status=status)
    checker = ConflictChecker(db)
    assert checker.check_booking_conflicts(teacher_profile.id, MONDAY, "10:00", "11:00") == []


def test_excluded_booking_is_ignored(db, teacher_profile, make_booking) -> None:
    own = make_booking("10:00", "11:00")
    checker = ConflictChecker(db)
    assert checker.check_booking_conflicts(
        teacher_profile.id, MONDAY, "10:30", "11:30", exclude_booking_id=own.id
    ) == []


def test_booked_times_for_date_are_ordered(db, teacher_profile, make_booking) -> None:
    make_booking("11:00", "12:00")
    make_booking("09:00", "10:00", status=BookingStatus.CONFIRMED)
    make_booking("10:00", "11:00", status=BookingStatus.CANCELLED)

    booked = ConflictChecker(db).get_booked_times_for_date(teacher_profile.id, MONDAY)
    assert booked == [
        {"start_time": "09:00", "end_time": "10:00"},
        {"start_time": "11:00", "end_time": "12:00"},
    ]
