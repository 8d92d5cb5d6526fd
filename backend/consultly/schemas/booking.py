# backend/consultly/schemas/booking.py
"""
Booking schemas for Consultly.

Times are "HH:MM" strings in the service timezone. The end time of a
booking is always derived from the service duration; clients may send it
for confirmation, and a mismatch is rejected by the service.
"""

from datetime import date, datetime
from decimal import Decimal
import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from ..models.booking import BookingStatus, PaymentStatus
from ..utils.time_helpers import is_valid_hhmm
from ._strict_base import StrictModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _ensure_hhmm(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return value
    candidate = value.strip()
    if not is_valid_hhmm(candidate):
        raise ValueError(f"{field_name} must be an HH:MM time")
    return candidate


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


class BookingCreate(StrictRequestModel):
    teacher_profile_id: str = Field(..., description="Teacher to book")
    service_id: str = Field(..., description="Service being booked")
    booking_date: date = Field(..., description="Date of the booking")
    start_time: str = Field(..., description="Start time (HH:MM)")
    end_time: Optional[str] = Field(None, description="Expected end time (HH:MM), optional")
    is_online: Optional[bool] = Field(None, description="Online session; defaults from service")
    notes: Optional[str] = Field(None, max_length=1000)
    user_phone: Optional[str] = Field(None, max_length=32)
    user_email: Optional[EmailStr] = None

    @field_validator("booking_date", mode="before")
    @classmethod
    def _date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "booking_date")

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: Optional[str], info: Any) -> Optional[str]:
        return _ensure_hhmm(v, info.field_name)


class BookingReschedule(StrictRequestModel):
    booking_date: date
    start_time: str

    @field_validator("booking_date", mode="before")
    @classmethod
    def _date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "booking_date")

    @field_validator("start_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        return _ensure_hhmm(v, "start_time") or v


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class CheckAvailabilityRequest(StrictRequestModel):
    teacher_profile_id: str
    booking_date: date
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str, info: Any) -> str:
        return _ensure_hhmm(v, info.field_name) or v


class AvailabilityCheckResponse(StrictModel):
    available: bool
    reason: Optional[str] = None
    conflicts: List[Dict[str, Any]] = Field(default_factory=list)


class AvailableSlotsResponse(StrictModel):
    teacher_profile_id: str
    service_id: str
    date: date
    slots: List[str]


class BookingResponse(StrictModel):
    id: str
    user_id: str
    teacher_profile_id: str
    service_id: str
    booking_date: date
    start_time: str
    end_time: str
    status: BookingStatus
    payment_status: PaymentStatus
    payment_intent_id: Optional[str] = None
    total_amount: Decimal
    currency: str
    is_online: bool
    notes: Optional[str] = None
    user_phone: Optional[str] = None
    user_email: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
    cancellation_reason: Optional[str] = None


class BookingListResponse(StrictModel):
    items: List[BookingResponse]
    total: int
    role: Literal["user", "teacher"]
