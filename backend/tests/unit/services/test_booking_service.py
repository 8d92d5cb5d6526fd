from datetime import datetime
from typing import Optional

import pytest
from sqlalchemy.exc import IntegrityError

from consultly.core.exceptions import (
    BookingConflictException,
    CalendarConflictException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from consultly.models.booking import Booking, BookingStatus, PaymentStatus
from consultly.models.calendar import GoogleCalendarBusySlot
from consultly.models.notification import Notification
from consultly.schemas.booking import BookingCreate
from consultly.services.booking_service import (
    BOOKING_CONFLICT_MESSAGE,
    OUTSIDE_AVAILABILITY_MESSAGE,
    BookingService,
)

from ...conftest import MONDAY, TUESDAY


def _request(teacher_profile, service, start_time="10:00", booking_date=MONDAY, **extra):
    return BookingCreate(
        teacher_profile_id=teacher_profile.id,
        service_id=service.id,
        booking_date=booking_date,
        start_time=start_time,
        **extra,
    )


@pytest.fixture(autouse=True)
def _schedule(monday_rule):
    return monday_rule


class TestCreateBooking:
    def test_creates_pending_booking_with_derived_end_time(
        self, db, booking_service, customer, teacher, teacher_profile, service
    ) -> None:
        booking = booking_service.create_booking(customer, _request(teacher_profile, service))

        assert booking.status == BookingStatus.PENDING.value
        assert booking.payment_status == PaymentStatus.PENDING.value
        assert booking.end_time == "11:00"
        assert booking.total_amount == service.price
        assert booking.user_email == customer.email

        notification = db.query(Notification).filter_by(user_id=teacher.id).one()
        assert notification.type == "booking_new"
        assert notification.related_booking_id == booking.id

    def test_same_slot_as_pending_booking_conflicts_without_new_row(
        self, db, booking_service, customer, teacher_profile, service, make_booking
    ) -> None:
        make_booking("10:00", "11:00")

        with pytest.raises(BookingConflictException) as exc_info:
            booking_service.create_booking(customer, _request(teacher_profile, service))

        assert exc_info.value.message == BOOKING_CONFLICT_MESSAGE
        assert db.query(Booking).count() == 1

    def test_touching_booking_is_allowed(
        self, booking_service, customer, teacher_profile, service, make_booking
    ) -> None:
        make_booking("10:00", "11:00", status=BookingStatus.CONFIRMED)
        booking = booking_service.create_booking(
            customer, _request(teacher_profile, service, start_time="11:00")
        )
        assert booking.end_time == "12:00"

    def test_cancelled_booking_frees_the_slot(
        self, booking_service, customer, teacher_profile, service, make_booking
    ) -> None:
        make_booking("10:00", "11:00", status=BookingStatus.CANCELLED)
        booking = booking_service.create_booking(customer, _request(teacher_profile, service))
        assert booking.start_time == "10:00"

    def test_start_outside_availability_is_rejected(
        self, booking_service, customer, teacher_profile, service
    ) -> None:
        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_booking(
                customer, _request(teacher_profile, service, start_time="11:30")
            )
        assert exc_info.value.message == OUTSIDE_AVAILABILITY_MESSAGE

    def test_day_without_rules_is_rejected(
        self, booking_service, customer, teacher_profile, service
    ) -> None:
        with pytest.raises(ValidationException):
            booking_service.create_booking(
                customer, _request(teacher_profile, service, booking_date=TUESDAY)
            )

    def test_availability_not_enforced_when_disabled(
        self, db, notification_service, calendar_service, customer, teacher_profile, service
    ) -> None:
        relaxed = BookingService(
            db,
            notification_service=notification_service,
            calendar_service=calendar_service,
            enforce_availability=False,
        )
        booking = relaxed.create_booking(
            customer, _request(teacher_profile, service, booking_date=TUESDAY, start_time="15:00")
        )
        assert booking.end_time == "16:00"

    def test_mismatched_end_time_is_rejected(
        self, booking_service, customer, teacher_profile, service
    ) -> None:
        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_booking(
                customer, _request(teacher_profile, service, end_time="10:30")
            )
        assert exc_info.value.details == {"expected_end_time": "11:00"}

    def test_unknown_service_is_not_found(self, booking_service, customer, teacher_profile) -> None:
        request = BookingCreate(
            teacher_profile_id=teacher_profile.id,
            service_id="01J00000000000000000000000",
            booking_date=MONDAY,
            start_time="10:00",
        )
        with pytest.raises(NotFoundException):
            booking_service.create_booking(customer, request)

    def test_busy_calendar_slot_blocks_booking(
        self, db, booking_service, customer, teacher_profile, service
    ) -> None:
        db.add(
            GoogleCalendarBusySlot(
                teacher_profile_id=teacher_profile.id,
                event_id="evt-1",
                start_time=datetime(2030, 1, 7, 10, 30),
                end_time=datetime(2030, 1, 7, 11, 30),
            )
        )
        db.commit()

        with pytest.raises(CalendarConflictException):
            booking_service.create_booking(customer, _request(teacher_profile, service))
        assert db.query(Booking).count() == 0

    def test_session_may_not_run_past_midnight(self, booking_service) -> None:
        with pytest.raises(ValidationException):
            booking_service._compute_end_time("23:30", 60)


class TestReschedule:
    def test_conflict_with_another_booking_even_when_excluding_itself(
        self, booking_service, customer, make_booking
    ) -> None:
        moving = make_booking("10:00", "11:00")
        make_booking("11:00", "12:00")

        with pytest.raises(BookingConflictException):
            booking_service.reschedule_booking(moving.id, customer, MONDAY, "10:30")

    def test_overlapping_its_own_interval_is_allowed(
        self, booking_service, customer, make_booking
    ) -> None:
        booking = make_booking("10:00", "11:00", status=BookingStatus.CONFIRMED)

        moved = booking_service.reschedule_booking(booking.id, customer, MONDAY, "10:30")

        assert moved.id == booking.id
        assert (moved.start_time, moved.end_time) == ("10:30", "11:30")
        assert moved.status == BookingStatus.PENDING.value
        assert moved.confirmed_at is None

    def test_only_the_customer_may_reschedule(self, booking_service, teacher, make_booking) -> None:
        booking = make_booking()
        with pytest.raises(ForbiddenException):
            booking_service.reschedule_booking(booking.id, teacher, MONDAY, "11:00")

    def test_closed_booking_cannot_move(self, booking_service, customer, make_booking) -> None:
        booking = make_booking(status=BookingStatus.CANCELLED)
        with pytest.raises(InvalidStateException):
            booking_service.reschedule_booking(booking.id, customer, MONDAY, "11:00")


class TestTransitions:
    def test_teacher_confirms_and_customer_is_notified(
        self, db, booking_service, customer, teacher, make_booking
    ) -> None:
        booking = make_booking()
        confirmed = booking_service.confirm_booking(booking.id, teacher)

        assert confirmed.status == BookingStatus.CONFIRMED.value
        assert confirmed.confirmed_at is not None
        assert db.query(Notification).filter_by(user_id=customer.id).count() == 1

    def test_customer_cannot_confirm(self, booking_service, customer, make_booking) -> None:
        booking = make_booking()
        with pytest.raises(ForbiddenException):
            booking_service.confirm_booking(booking.id, customer)

    def test_customer_cancel_notifies_only_the_teacher(
        self, db, booking_service, customer, teacher, make_booking
    ) -> None:
        booking = make_booking()
        cancelled = booking_service.cancel_booking(booking.id, customer, "Schedule change")

        assert cancelled.status == BookingStatus.CANCELLED.value
        assert cancelled.cancelled_by_id == customer.id
        assert cancelled.cancellation_reason == "Schedule change"
        assert db.query(Notification).filter_by(user_id=teacher.id).count() == 1
        assert db.query(Notification).filter_by(user_id=customer.id).count() == 0

    def test_stranger_cannot_cancel(self, booking_service, other_customer, make_booking) -> None:
        booking = make_booking()
        with pytest.raises(ForbiddenException):
            booking_service.cancel_booking(booking.id, other_customer)

    def test_complete_requires_confirmed(self, booking_service, teacher, make_booking) -> None:
        booking = make_booking()
        with pytest.raises(InvalidStateException):
            booking_service.complete_booking(booking.id, teacher)

        booking_service.confirm_booking(booking.id, teacher)
        completed = booking_service.complete_booking(booking.id, teacher)
        assert completed.status == BookingStatus.COMPLETED.value
        assert completed.completed_at is not None

    def test_refund_is_admin_only(self, booking_service, teacher, admin, make_booking) -> None:
        booking = make_booking(status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)
        with pytest.raises(ForbiddenException):
            booking_service.refund_booking(booking.id, teacher)

        refunded = booking_service.refund_booking(booking.id, admin)
        assert refunded.status == BookingStatus.REFUNDED.value
        assert refunded.payment_status == PaymentStatus.REFUNDED.value

    @pytest.mark.parametrize(
        "terminal", [BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.REFUNDED]
    )
    def test_terminal_bookings_accept_no_transition(
        self, booking_service, customer, admin, make_booking, terminal
    ) -> None:
        booking = make_booking(status=terminal)
        with pytest.raises(InvalidStateException):
            booking_service.confirm_booking(booking.id, admin)
        with pytest.raises(InvalidStateException):
            booking_service.cancel_booking(booking.id, customer)
        with pytest.raises(InvalidStateException):
            booking_service.complete_booking(booking.id, admin)
        with pytest.raises(InvalidStateException):
            booking_service.refund_booking(booking.id, admin)

    def test_missing_booking_is_not_found(self, booking_service, admin) -> None:
        with pytest.raises(NotFoundException):
            booking_service.confirm_booking("01J00000000000000000000000", admin)


class TestPayments:
    def test_payment_confirms_pending_booking(self, db, booking_service, customer, teacher, make_booking) -> None:
        booking = make_booking()

        paid = booking_service.apply_payment_success(booking.id, "pi_123")

        assert paid.status == BookingStatus.CONFIRMED.value
        assert paid.payment_status == PaymentStatus.PAID.value
        assert paid.payment_intent_id == "pi_123"
        assert db.query(Notification).filter_by(user_id=customer.id).count() == 1
        assert db.query(Notification).filter_by(user_id=teacher.id).count() == 1

    def test_duplicate_payment_event_is_a_no_op(self, db, booking_service, make_booking) -> None:
        booking = make_booking()
        booking_service.apply_payment_success(booking.id, "pi_123")
        notifications_after_first = db.query(Notification).count()

        again = booking_service.apply_payment_success(booking.id, "pi_other")

        assert again.payment_intent_id == "pi_123"
        assert again.status == BookingStatus.CONFIRMED.value
        assert db.query(Notification).count() == notifications_after_first

    def test_payment_for_cancelled_booking_is_rejected(self, booking_service, make_booking) -> None:
        booking = make_booking(status=BookingStatus.CANCELLED)
        with pytest.raises(InvalidStateException):
            booking_service.apply_payment_success(booking.id, "pi_123")

    def test_failure_never_downgrades_paid(self, booking_service, make_booking) -> None:
        booking = make_booking(status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID)
        result = booking_service.apply_payment_failure(booking.id)
        assert result.payment_status == PaymentStatus.PAID.value

    def test_failure_marks_pending_payment_failed(self, booking_service, make_booking) -> None:
        booking = make_booking()
        result = booking_service.apply_payment_failure(booking.id)
        assert result.payment_status == PaymentStatus.FAILED.value
        assert result.status == BookingStatus.PENDING.value

    @pytest.mark.parametrize(
        "terminal, payment",
        [
            (BookingStatus.CANCELLED, PaymentStatus.PENDING),
            (BookingStatus.COMPLETED, PaymentStatus.PENDING),
            (BookingStatus.REFUNDED, PaymentStatus.REFUNDED),
        ],
    )
    def test_failure_leaves_closed_bookings_untouched(
        self, db, booking_service, make_booking, terminal, payment
    ) -> None:
        booking = make_booking(status=terminal, payment_status=payment)

        with pytest.raises(InvalidStateException):
            booking_service.apply_payment_failure(booking.id)

        db.expire_all()
        stored = db.get(Booking, booking.id)
        assert stored.status == terminal.value
        assert stored.payment_status == payment.value


class TestQueries:
    def test_available_slots_exclude_bookings_and_busy_time(
        self, db, booking_service, teacher_profile, service, make_booking
    ) -> None:
        make_booking("10:00", "11:00")
        db.add(
            GoogleCalendarBusySlot(
                teacher_profile_id=teacher_profile.id,
                event_id="evt-1",
                start_time=datetime(2030, 1, 7, 11, 45),
                end_time=datetime(2030, 1, 7, 12, 0),
            )
        )
        db.commit()

        slots = booking_service.get_available_slots(teacher_profile.id, service.id, MONDAY)
        # 10:00 and 10:30 overlap the booking; 11:00 overlaps the busy event
        assert slots == []

    def test_available_slots_deduplicate_overlapping_rules(
        self, db, booking_service, teacher_profile, service
    ) -> None:
        from consultly.models.availability import AvailabilityRule

        db.add(
            AvailabilityRule(
                teacher_profile_id=teacher_profile.id,
                day_of_week=1,
                start_time="11:00",
                end_time="13:00",
            )
        )
        db.commit()

        slots = booking_service.get_available_slots(teacher_profile.id, service.id, MONDAY)
        assert slots == ["10:00", "10:30", "11:00", "11:30", "12:00"]

    def test_check_availability_reports_conflicts(
        self, booking_service, teacher_profile, make_booking
    ) -> None:
        make_booking("10:00", "11:00")

        busy = booking_service.check_availability(teacher_profile.id, MONDAY, "10:30", "11:30")
        free = booking_service.check_availability(teacher_profile.id, MONDAY, "11:00", "12:00")

        assert busy["available"] is False
        assert busy["reason"] == BOOKING_CONFLICT_MESSAGE
        assert len(busy["conflicts"]) == 1
        assert free == {"available": True, "reason": None, "conflicts": []}

    def test_check_availability_matches_create_outside_schedule(
        self, booking_service, customer, teacher_profile, service
    ) -> None:
        result = booking_service.check_availability(teacher_profile.id, MONDAY, "03:00", "04:00")

        assert result == {
            "available": False,
            "reason": OUTSIDE_AVAILABILITY_MESSAGE,
            "conflicts": [],
        }
        with pytest.raises(ValidationException):
            booking_service.create_booking(
                customer, _request(teacher_profile, service, start_time="03:00")
            )

    def test_check_availability_ignores_schedule_when_not_enforced(
        self, db, notification_service, calendar_service, teacher_profile
    ) -> None:
        relaxed = BookingService(
            db,
            notification_service=notification_service,
            calendar_service=calendar_service,
            enforce_availability=False,
        )
        result = relaxed.check_availability(teacher_profile.id, MONDAY, "03:00", "04:00")
        assert result["available"] is True

    def test_check_availability_rejects_inverted_range(self, booking_service, teacher_profile) -> None:
        with pytest.raises(ValidationException):
            booking_service.check_availability(teacher_profile.id, MONDAY, "11:00", "10:00")

    def test_booking_visible_to_parties_only(
        self, booking_service, customer, teacher, admin, other_customer, make_booking
    ) -> None:
        booking = make_booking()
        for actor in (customer, teacher, admin):
            assert booking_service.get_booking_for_user(booking.id, actor).id == booking.id
        with pytest.raises(ForbiddenException):
            booking_service.get_booking_for_user(booking.id, other_customer)

    def test_listing_by_role(self, booking_service, customer, teacher, make_booking) -> None:
        make_booking("10:00", "11:00")
        make_booking("11:00", "12:00", status=BookingStatus.CANCELLED)

        assert len(booking_service.list_bookings_for_user(customer)) == 2
        assert len(booking_service.list_bookings_for_teacher(teacher, "cancelled")) == 1
        with pytest.raises(ForbiddenException):
            booking_service.list_bookings_for_teacher(customer)


class _FakeDiag:
    def __init__(self, constraint_name: str) -> None:
        self.constraint_name = constraint_name


class _FakeOrig:
    def __init__(self, constraint_name: Optional[str], text: str = "") -> None:
        self.diag = _FakeDiag(constraint_name) if constraint_name else None
        self._text = text

    def __str__(self) -> str:
        return self._text


def _make_error(constraint: Optional[str], text: str = "") -> IntegrityError:
    return IntegrityError("stmt", params=None, orig=_FakeOrig(constraint, text=text))


class TestIntegrityMapping:
    def test_exclusion_constraint_by_diag(self) -> None:
        name, known = BookingService._resolve_integrity_constraint(
            _make_error("bookings_no_overlap_per_teacher")
        )
        assert (name, known) == ("bookings_no_overlap_per_teacher", True)

    def test_sqlite_unique_message(self) -> None:
        name, known = BookingService._resolve_integrity_constraint(
            _make_error(
                None,
                text="UNIQUE constraint failed: bookings.teacher_profile_id, "
                "bookings.booking_date, bookings.start_time",
            )
        )
        assert (name, known) == ("uq_bookings_live_slot", True)

    def test_unrelated_constraint(self) -> None:
        name, known = BookingService._resolve_integrity_constraint(
            _make_error("users_email_key")
        )
        assert known is False

    def test_sqlite_foreign_key_message_is_not_a_slot(self) -> None:
        name, known = BookingService._resolve_integrity_constraint(
            _make_error(None, text="FOREIGN KEY constraint failed")
        )
        assert known is False

    def test_sqlite_not_null_on_booking_columns_is_not_a_slot(self) -> None:
        name, known = BookingService._resolve_integrity_constraint(
            _make_error(None, text="NOT NULL constraint failed: bookings.teacher_profile_id")
        )
        assert known is False

    def test_unrelated_constraint_on_create_is_a_service_error(
        self, db, booking_service, customer, teacher_profile, service, monkeypatch
    ) -> None:
        def _reject(**kwargs):
            raise _make_error(None, text="FOREIGN KEY constraint failed")

        monkeypatch.setattr(booking_service.repository, "create", _reject)

        with pytest.raises(ServiceException) as exc_info:
            booking_service.create_booking(customer, _request(teacher_profile, service))

        assert not isinstance(exc_info.value, BookingConflictException)
        assert exc_info.value.message != BOOKING_CONFLICT_MESSAGE
        assert db.query(Booking).count() == 0

    def test_race_on_unique_index_surfaces_as_conflict(
        self, db, booking_service, customer, teacher_profile, service, make_booking, monkeypatch
    ) -> None:
        make_booking("10:00", "11:00")
        # Simulate a concurrent writer that committed after our conflict check ran
        monkeypatch.setattr(
            booking_service.conflict_checker, "check_booking_conflicts", lambda *a, **k: []
        )

        with pytest.raises(BookingConflictException) as exc_info:
            booking_service.create_booking(customer, _request(teacher_profile, service))

        assert exc_info.value.details == {"constraint": "uq_bookings_live_slot"}
        assert db.query(Booking).count() == 1
