from ulid import ULID

from consultly.core.ulid_helper import is_valid_ulid
from consultly.middleware.prometheus_middleware import normalize_path


def test_ulid_segments_collapse_to_placeholder() -> None:
    booking_id = str(ULID())
    assert normalize_path(f"/api/v1/bookings/{booking_id}/confirm") == "/api/v1/bookings/:id/confirm"


def test_numeric_segments_collapse_to_placeholder() -> None:
    assert normalize_path("/api/v1/notifications/42/read") == "/api/v1/notifications/:id/read"


def test_static_paths_are_unchanged() -> None:
    assert normalize_path("/api/v1/calendar/busy-slots") == "/api/v1/calendar/busy-slots"


def test_is_valid_ulid_rejects_route_words() -> None:
    assert is_valid_ulid(str(ULID()))
    assert not is_valid_ulid("notifications")
