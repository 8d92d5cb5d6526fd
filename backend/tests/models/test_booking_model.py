import pytest

from consultly.models.booking import (
    ACTIVE_BOOKING_STATUSES,
    TERMINAL_BOOKING_STATUSES,
    BookingStatus,
    can_transition,
)


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        ("pending", "confirmed", True),
        ("pending", "cancelled", True),
        ("pending", "completed", False),
        ("pending", "refunded", False),
        ("confirmed", "completed", True),
        ("confirmed", "cancelled", True),
        ("confirmed", "refunded", True),
        ("confirmed", "pending", False),
        ("bogus", "confirmed", False),
    ],
)
def test_transition_table(current: str, target: str, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


def test_terminal_statuses_have_no_exits() -> None:
    assert TERMINAL_BOOKING_STATUSES == {"completed", "cancelled", "refunded"}
    for terminal in TERMINAL_BOOKING_STATUSES:
        assert not any(can_transition(terminal, s.value) for s in BookingStatus)


def test_only_pending_and_confirmed_hold_time() -> None:
    assert ACTIVE_BOOKING_STATUSES == {"pending", "confirmed"}
