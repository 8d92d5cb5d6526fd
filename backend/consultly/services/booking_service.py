# backend/consultly/services/booking_service.py
"""
Booking Service for Consultly

Owns the booking lifecycle:

    pending -> confirmed -> completed
    pending | confirmed -> cancelled
    confirmed -> refunded

Creation and reschedule run the conflict check inside the same transaction
that writes the booking, after locking the teacher's profile row, and the
live-slot unique index (plus the PostgreSQL exclusion constraint) turns any
race that slips through into an IntegrityError, reported as a booking
conflict. Notifications are sent after commit and never undo a transition.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import NotificationType
from ..core.exceptions import (
    BookingConflictException,
    CalendarConflictException,
    DomainException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.service import Service
from ..models.teacher_profile import TeacherProfile
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..schemas.booking import BookingCreate
from ..utils.time_helpers import (
    add_minutes,
    combine,
    day_of_week_sunday_zero,
    is_valid_hhmm,
    to_minutes,
)
from .base import BaseService
from .calendar_sync_service import CalendarSyncService
from .conflict_checker import ConflictChecker, intervals_overlap
from .notification_service import NotificationService
from .slot_generator import generate_slots, unique_slots

logger = logging.getLogger(__name__)

BOOKING_CONFLICT_MESSAGE = "This time slot is already booked"
CALENDAR_CONFLICT_MESSAGE = "The teacher is busy at this time"
OUTSIDE_AVAILABILITY_MESSAGE = "The selected time is outside the teacher's availability"
LIVE_SLOT_CONSTRAINTS = ("uq_bookings_live_slot", "bookings_no_overlap_per_teacher")

MINUTES_PER_DAY = 24 * 60


class BookingService(BaseService):
    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        calendar_service: Optional[CalendarSyncService] = None,
        *,
        enforce_availability: Optional[bool] = None,
        slot_increment_minutes: Optional[int] = None,
    ):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.calendar_service = calendar_service or CalendarSyncService(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.service_repository = RepositoryFactory.create_base_repository(db, Service)
        self.teacher_repository = RepositoryFactory.create_base_repository(db, TeacherProfile)
        self.enforce_availability = (
            settings.enforce_availability if enforce_availability is None else enforce_availability
        )
        self.slot_increment_minutes = slot_increment_minutes or settings.slot_increment_minutes

    # ------------------------------------------------------------------
    # Create / reschedule
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(self, user: User, booking_data: BookingCreate) -> Booking:
        """
        Create a pending booking after availability and conflict checks.

        Raises:
            NotFoundException: Unknown or inactive service or teacher
            ValidationException: Service/teacher mismatch, end time mismatch,
                or start outside the teacher's availability
            BookingConflictException: Overlaps a live booking
            CalendarConflictException: Overlaps a busy external calendar event
        """
        try:
            with self.transaction():
                service = self._get_bookable_service(booking_data.service_id)
                profile = self.repository.lock_teacher_profile(booking_data.teacher_profile_id)
                if profile is None or not profile.is_active:
                    raise NotFoundException("Teacher not found")
                if service.teacher_profile_id != profile.id:
                    raise ValidationException(
                        "Service is not offered by this teacher",
                        details={"service_id": service.id, "teacher_profile_id": profile.id},
                    )

                end_time = self._compute_end_time(booking_data.start_time, service.duration_minutes)
                if booking_data.end_time and booking_data.end_time != end_time:
                    raise ValidationException(
                        f"End time must be {end_time} for a {service.duration_minutes}-minute session",
                        details={"expected_end_time": end_time},
                    )

                self._check_slot_free(
                    profile.id,
                    booking_data.booking_date,
                    booking_data.start_time,
                    end_time,
                    duration_minutes=service.duration_minutes,
                )

                booking = self.repository.create(
                    user_id=user.id,
                    teacher_profile_id=profile.id,
                    service_id=service.id,
                    booking_date=booking_data.booking_date,
                    start_time=booking_data.start_time,
                    end_time=end_time,
                    status=BookingStatus.PENDING.value,
                    payment_status=PaymentStatus.PENDING.value,
                    total_amount=service.price,
                    currency=service.currency or settings.default_currency,
                    is_online=(
                        booking_data.is_online
                        if booking_data.is_online is not None
                        else bool(service.is_online)
                    ),
                    notes=booking_data.notes,
                    user_phone=booking_data.user_phone or user.phone,
                    user_email=booking_data.user_email or user.email,
                )
        except IntegrityError as exc:
            raise self._error_from_integrity_error(exc, booking_data.teacher_profile_id) from exc

        self.log_operation("create_booking", booking_id=booking.id, user_id=user.id)
        self.notification_service.notify_booking(
            profile.user_id, NotificationType.BOOKING_NEW, "New booking request", booking
        )
        return booking

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self, booking_id: str, actor: User, new_date: date, new_start_time: str
    ) -> Booking:
        """
        Move a live booking to a new date and start, keeping its id.

        The booking's own current interval is excluded from the conflict
        check. The booking returns to ``pending`` so the teacher re-confirms.
        """
        try:
            with self.transaction():
                booking = self._get_booking_for_update(booking_id)
                if booking.user_id != actor.id:
                    raise ForbiddenException("Only the customer can reschedule this booking")
                if not booking.is_active:
                    raise InvalidStateException(
                        f"Cannot reschedule a booking that is {booking.status}",
                        current_status=booking.status,
                    )

                self.repository.lock_teacher_profile(booking.teacher_profile_id)
                duration = booking.service.duration_minutes
                new_end_time = self._compute_end_time(new_start_time, duration)

                self._check_slot_free(
                    booking.teacher_profile_id,
                    new_date,
                    new_start_time,
                    new_end_time,
                    duration_minutes=duration,
                    exclude_booking_id=booking.id,
                )

                booking.booking_date = new_date
                booking.start_time = new_start_time
                booking.end_time = new_end_time
                booking.status = BookingStatus.PENDING.value
                booking.confirmed_at = None
                self.repository.flush()
        except IntegrityError as exc:
            raise self._error_from_integrity_error(exc, booking_id) from exc

        self.log_operation("reschedule_booking", booking_id=booking.id)
        self.notification_service.notify_booking(
            booking.teacher_profile.user_id,
            NotificationType.BOOKING_RESCHEDULED,
            "Booking rescheduled, please confirm the new time",
            booking,
        )
        return booking

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, booking_id: str, actor: User) -> Booking:
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            if not (actor.is_admin or self._is_booking_teacher(booking, actor)):
                raise ForbiddenException("Only the teacher can confirm this booking")
            self._ensure_transition(booking, BookingStatus.CONFIRMED, "confirm")
            booking.confirm()

        self.notification_service.notify_booking(
            booking.user_id, NotificationType.BOOKING_CONFIRMED, "Booking confirmed", booking
        )
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, actor: User, reason: Optional[str] = None) -> Booking:
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            is_teacher = self._is_booking_teacher(booking, actor)
            if not (actor.is_admin or is_teacher or booking.user_id == actor.id):
                raise ForbiddenException("You cannot cancel this booking")
            self._ensure_transition(booking, BookingStatus.CANCELLED, "cancel")
            booking.cancel(actor.id, reason)

        teacher_user_id = booking.teacher_profile.user_id
        for recipient in {booking.user_id, teacher_user_id} - {actor.id}:
            self.notification_service.notify_booking(
                recipient, NotificationType.BOOKING_CANCELLED, "Booking cancelled", booking
            )
        return booking

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, booking_id: str, actor: User) -> Booking:
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            if not (actor.is_admin or self._is_booking_teacher(booking, actor)):
                raise ForbiddenException("Only the teacher can complete this booking")
            self._ensure_transition(booking, BookingStatus.COMPLETED, "complete")
            booking.complete()
        return booking

    @BaseService.measure_operation("refund_booking")
    def refund_booking(self, booking_id: str, actor: User) -> Booking:
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            if not actor.is_admin:
                raise ForbiddenException("Only an admin can refund a booking")
            self._ensure_transition(booking, BookingStatus.REFUNDED, "refund")
            booking.refund()

        self.notification_service.notify_booking(
            booking.user_id, NotificationType.BOOKING_CANCELLED, "Booking refunded", booking
        )
        return booking

    @BaseService.measure_operation("apply_payment_success")
    def apply_payment_success(self, booking_id: str, payment_intent_id: Optional[str]) -> Booking:
        """
        Mark a booking paid and confirm it, as one transition.

        A booking that is already paid is returned unchanged, so redelivered
        webhooks are harmless.
        """
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            if booking.payment_status == PaymentStatus.PAID.value:
                self.logger.info(f"Booking {booking_id} already paid, ignoring duplicate event")
                return booking
            if booking.is_terminal:
                raise InvalidStateException(
                    f"Cannot record payment for a booking that is {booking.status}",
                    current_status=booking.status,
                )
            booking.payment_status = PaymentStatus.PAID.value
            if payment_intent_id:
                booking.payment_intent_id = payment_intent_id
            if booking.status == BookingStatus.PENDING.value:
                booking.confirm()

        self.notification_service.notify_booking(
            booking.user_id, NotificationType.PAYMENT_RECEIVED, "Payment received", booking
        )
        self.notification_service.notify_booking(
            booking.teacher_profile.user_id,
            NotificationType.BOOKING_CONFIRMED,
            "Booking paid and confirmed",
            booking,
        )
        return booking

    @BaseService.measure_operation("apply_payment_failure")
    def apply_payment_failure(self, booking_id: str) -> Booking:
        """Record a failed payment; the booking status is left alone."""
        with self.transaction():
            booking = self._get_booking_for_update(booking_id)
            if booking.payment_status == PaymentStatus.PAID.value:
                self.logger.warning(f"Ignoring payment failure for paid booking {booking_id}")
                return booking
            if booking.is_terminal:
                raise InvalidStateException(
                    f"Cannot record a payment failure for a booking that is {booking.status}",
                    current_status=booking.status,
                )
            booking.payment_status = PaymentStatus.FAILED.value

        self.notification_service.notify_booking(
            booking.user_id, NotificationType.SYSTEM, "Payment failed, please try again", booking
        )
        return booking

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self, teacher_profile_id: str, check_date: date, start_time: str, end_time: str
    ) -> Dict[str, Any]:
        """Speculative check shown before booking; writes nothing."""
        if not is_valid_hhmm(start_time) or not is_valid_hhmm(end_time) or start_time >= end_time:
            raise ValidationException("Invalid time range")

        if self.enforce_availability and start_time not in self._generate_day_slots(
            teacher_profile_id, check_date, to_minutes(end_time) - to_minutes(start_time)
        ):
            return {"available": False, "reason": OUTSIDE_AVAILABILITY_MESSAGE, "conflicts": []}

        conflicts = self.conflict_checker.check_booking_conflicts(
            teacher_profile_id, check_date, start_time, end_time
        )
        if conflicts:
            return {"available": False, "reason": BOOKING_CONFLICT_MESSAGE, "conflicts": conflicts}
        if self.calendar_service.has_busy_conflict(
            teacher_profile_id, combine(check_date, start_time), combine(check_date, end_time)
        ):
            return {"available": False, "reason": CALENDAR_CONFLICT_MESSAGE, "conflicts": []}
        return {"available": True, "reason": None, "conflicts": []}

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(
        self, teacher_profile_id: str, service_id: str, target_date: date
    ) -> List[str]:
        """Generated starts for the date minus live bookings and cached busy time."""
        service = self._get_bookable_service(service_id)
        if service.teacher_profile_id != teacher_profile_id:
            raise ValidationException("Service is not offered by this teacher")

        duration = service.duration_minutes
        candidates = unique_slots(self._generate_day_slots(teacher_profile_id, target_date, duration))
        booked = self.conflict_checker.get_booked_times_for_date(teacher_profile_id, target_date)
        day_start = datetime.combine(target_date, datetime.min.time())
        busy = self.calendar_service.get_busy_slots(
            teacher_profile_id, day_start, day_start + timedelta(days=1)
        )

        available = []
        for start in candidates:
            end = add_minutes(start, duration)
            if any(intervals_overlap(start, end, b["start_time"], b["end_time"]) for b in booked):
                continue
            start_dt, end_dt = combine(target_date, start), combine(target_date, end)
            if any(intervals_overlap(start_dt, end_dt, s.start_time, s.end_time) for s in busy):
                continue
            available.append(start)
        return available

    def get_booking_for_user(self, booking_id: str, actor: User) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not (
            actor.is_admin or booking.user_id == actor.id or self._is_booking_teacher(booking, actor)
        ):
            raise ForbiddenException("You do not have access to this booking")
        return booking

    def list_bookings_for_user(self, actor: User, status: Optional[str] = None) -> List[Booking]:
        return self.repository.list_for_user(actor.id, status)

    def list_bookings_for_teacher(self, actor: User, status: Optional[str] = None) -> List[Booking]:
        profile = self.teacher_repository.find_one_by(user_id=actor.id)
        if profile is None:
            raise ForbiddenException("Only teachers have teaching bookings")
        return self.repository.list_for_teacher(profile.id, status)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_bookable_service(self, service_id: str) -> Service:
        service = self.service_repository.get_by_id(service_id)
        if service is None or not service.is_active:
            raise NotFoundException("Service not found", details={"service_id": service_id})
        return service

    def _get_booking_for_update(self, booking_id: str) -> Booking:
        booking = self.repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    def _is_booking_teacher(self, booking: Booking, actor: User) -> bool:
        return booking.teacher_profile is not None and booking.teacher_profile.user_id == actor.id

    @staticmethod
    def _ensure_transition(booking: Booking, target: BookingStatus, verb: str) -> None:
        if not booking.can_transition_to(target):
            raise InvalidStateException(
                f"Cannot {verb} a booking that is {booking.status}",
                current_status=booking.status,
            )

    @staticmethod
    def _compute_end_time(start_time: str, duration_minutes: int) -> str:
        if to_minutes(start_time) + duration_minutes > MINUTES_PER_DAY - 1:
            raise ValidationException("Booking must end on the same day")
        return add_minutes(start_time, duration_minutes)

    def _generate_day_slots(
        self, teacher_profile_id: str, target_date: date, duration_minutes: int
    ) -> List[str]:
        rules = self.availability_repository.get_rules(
            teacher_profile_id, day_of_week=day_of_week_sunday_zero(target_date)
        )
        return generate_slots(rules, duration_minutes, self.slot_increment_minutes)

    def _check_slot_free(
        self,
        teacher_profile_id: str,
        booking_date: date,
        start_time: str,
        end_time: str,
        *,
        duration_minutes: int,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        if self.enforce_availability and start_time not in self._generate_day_slots(
            teacher_profile_id, booking_date, duration_minutes
        ):
            raise ValidationException(
                OUTSIDE_AVAILABILITY_MESSAGE,
                code="OUTSIDE_AVAILABILITY",
                details={"booking_date": booking_date.isoformat(), "start_time": start_time},
            )

        conflicts = self.conflict_checker.check_booking_conflicts(
            teacher_profile_id, booking_date, start_time, end_time, exclude_booking_id
        )
        if conflicts:
            prometheus_metrics.record_booking_conflict("booking")
            raise BookingConflictException(
                BOOKING_CONFLICT_MESSAGE, details={"conflicts": conflicts}
            )

        if self.calendar_service.has_busy_conflict(
            teacher_profile_id,
            combine(booking_date, start_time),
            combine(booking_date, end_time),
        ):
            prometheus_metrics.record_booking_conflict("calendar")
            raise CalendarConflictException(CALENDAR_CONFLICT_MESSAGE)

    def _error_from_integrity_error(
        self, exc: IntegrityError, reference_id: str
    ) -> DomainException:
        constraint_name, known = self._resolve_integrity_constraint(exc)
        if not known:
            self.logger.error(
                "Booking write rejected by an unexpected constraint",
                extra={"reference_id": reference_id, "error": str(exc.orig)},
            )
            return ServiceException("Booking could not be saved")
        self.logger.warning(
            "Booking write rejected by constraint",
            extra={"reference_id": reference_id, "constraint": constraint_name},
        )
        prometheus_metrics.record_booking_conflict("constraint")
        return BookingConflictException(
            BOOKING_CONFLICT_MESSAGE, details={"constraint": constraint_name}
        )

    @staticmethod
    def _resolve_integrity_constraint(exc: IntegrityError) -> Tuple[str, bool]:
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = ""
        if diag is not None:
            constraint_name = getattr(diag, "constraint_name", "") or ""
        if not constraint_name and orig is not None:
            text = str(orig)
            for name in LIVE_SLOT_CONSTRAINTS:
                if name in text:
                    constraint_name = name
            # SQLite reports the columns rather than the index name
            if (
                not constraint_name
                and "UNIQUE constraint failed" in text
                and "bookings.teacher_profile_id" in text
            ):
                constraint_name = LIVE_SLOT_CONSTRAINTS[0]
        return constraint_name, constraint_name in LIVE_SLOT_CONSTRAINTS
