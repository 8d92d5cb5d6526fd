# backend/consultly/models/booking.py
"""
Booking model for Consultly.

A booking reserves one teacher for one service on a date between two
"HH:MM" wall-clock times. Bookings are never deleted; they move through
the status machine below and terminal bookings are never mutated again.

    pending -> confirmed | cancelled
    confirmed -> completed | cancelled | refunded

Only ``pending`` and ``confirmed`` bookings occupy time. The partial unique
index on (teacher, date, start) backs the service-level conflict check so
two concurrent requests for the same start cannot both commit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func, text
import ulid

from ..core.constants import DEFAULT_CURRENCY
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.REFUNDED}
    ),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.REFUNDED: frozenset(),
}

ACTIVE_BOOKING_STATUSES: FrozenSet[str] = frozenset(
    {BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value}
)
TERMINAL_BOOKING_STATUSES: FrozenSet[str] = frozenset(
    status.value for status, targets in BOOKING_TRANSITIONS.items() if not targets
)


def can_transition(current: str, target: str) -> bool:
    """Whether ``current -> target`` is a legal booking status change."""
    try:
        return BookingStatus(target) in BOOKING_TRANSITIONS[BookingStatus(current)]
    except ValueError:
        return False


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    teacher_profile_id = Column(
        String(26), ForeignKey("teacher_profiles.id"), nullable=False, index=True
    )
    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)

    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_intent_id = Column(String(255), nullable=True, comment="Stripe payment intent")

    # Snapshot of the service price at booking time
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    is_online = Column(Boolean, nullable=False, default=True)

    notes = Column(Text, nullable=True)
    user_phone = Column(String(32), nullable=True)
    user_email = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    teacher_profile = relationship("TeacherProfile")
    service = relationship("Service")
    cancelled_by = relationship("User", foreign_keys=[cancelled_by_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'refunded')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refunded', 'failed')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("start_time < end_time", name="check_booking_time_order"),
        CheckConstraint("total_amount >= 0", name="check_booking_amount_non_negative"),
        Index(
            "uq_bookings_live_slot",
            "teacher_profile_id",
            "booking_date",
            "start_time",
            unique=True,
            postgresql_where=text("status IN ('pending', 'confirmed')"),
            sqlite_where=text("status IN ('pending', 'confirmed')"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: user={self.user_id}, teacher={self.teacher_profile_id}, "
            f"date={self.booking_date}, time={self.start_time}-{self.end_time}, "
            f"status={self.status}/{self.payment_status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES

    def can_transition_to(self, target: BookingStatus) -> bool:
        return can_transition(self.status, target.value)

    def confirm(self) -> None:
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} confirmed")

    def cancel(self, cancelled_by_user_id: str, reason: Optional[str] = None) -> None:
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancelled_by_id = cancelled_by_user_id
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by user {cancelled_by_user_id}")

    def complete(self) -> None:
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as completed")

    def refund(self) -> None:
        self.status = BookingStatus.REFUNDED.value
        self.payment_status = PaymentStatus.REFUNDED.value
        logger.info(f"Booking {self.id} refunded")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "teacher_profile_id": self.teacher_profile_id,
            "service_id": self.service_id,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status,
            "payment_status": self.payment_status,
            "total_amount": float(self.total_amount) if self.total_amount is not None else None,
            "currency": self.currency,
            "is_online": self.is_online,
            "notes": self.notes,
        }
