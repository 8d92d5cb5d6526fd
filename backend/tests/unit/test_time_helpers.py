from datetime import date, datetime

import pytest

from consultly.utils.time_helpers import (
    add_minutes,
    combine,
    day_of_week_sunday_zero,
    format_hhmm,
    is_valid_hhmm,
    to_minutes,
)


@pytest.mark.parametrize("value", ["00:00", "09:30", "23:59"])
def test_valid_hhmm(value: str) -> None:
    assert is_valid_hhmm(value)


@pytest.mark.parametrize("value", ["24:00", "9:30", "12:60", "", "12:00:00", "ab:cd"])
def test_invalid_hhmm(value: str) -> None:
    assert not is_valid_hhmm(value)


def test_to_minutes_rejects_malformed_time() -> None:
    with pytest.raises(ValueError):
        to_minutes("25:00")


def test_minutes_helpers() -> None:
    assert to_minutes("10:30") == 630
    assert format_hhmm(630) == "10:30"
    assert add_minutes("10:30", 60) == "11:30"


def test_day_of_week_counts_from_sunday() -> None:
    assert day_of_week_sunday_zero(date(2030, 1, 6)) == 0  # Sunday
    assert day_of_week_sunday_zero(date(2030, 1, 7)) == 1  # Monday
    assert day_of_week_sunday_zero(date(2030, 1, 12)) == 6  # Saturday


def test_combine_builds_naive_datetime() -> None:
    assert combine(date(2030, 1, 7), "10:15") == datetime(2030, 1, 7, 10, 15)
