"""
Shared fixtures: an in-memory SQLite database per test and a small seeded
world of one customer, one teacher with a 60-minute service and a Monday
10:00-12:00 window, and one admin.
"""

from datetime import date
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import consultly.models  # noqa: F401  registers all tables
from consultly.core.enums import RoleName
from consultly.database import Base
from consultly.integrations.google_calendar_client import FakeGoogleCalendarClient
from consultly.models.availability import AvailabilityRule
from consultly.models.booking import Booking, BookingStatus, PaymentStatus
from consultly.models.service import Service
from consultly.models.teacher_profile import TeacherProfile
from consultly.models.user import User
from consultly.services.booking_service import BookingService
from consultly.services.calendar_sync_service import CalendarSyncService
from consultly.services.notification_service import NotificationService

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Iterator[Session]:
    TestingSession = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def customer(db: Session) -> User:
    user = User(email="customer@example.com", name="Casey Customer", role=RoleName.USER.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_customer(db: Session) -> User:
    user = User(email="other@example.com", name="Olive Other", role=RoleName.USER.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db: Session) -> User:
    user = User(email="admin@example.com", name="Ada Admin", role=RoleName.ADMIN.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def teacher(db: Session) -> User:
    user = User(email="teacher@example.com", name="Tam Teacher", role=RoleName.TEACHER.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def teacher_profile(db: Session, teacher: User) -> TeacherProfile:
    profile = TeacherProfile(user_id=teacher.id, display_name="Tam", region="HK")
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def service(db: Session, teacher_profile: TeacherProfile) -> Service:
    svc = Service(
        teacher_profile_id=teacher_profile.id,
        name="Career consultation",
        duration_minutes=60,
        price=Decimal("500.00"),
        currency="HKD",
    )
    db.add(svc)
    db.commit()
    return svc


@pytest.fixture
def monday_rule(db: Session, teacher_profile: TeacherProfile) -> AvailabilityRule:
    rule = AvailabilityRule(
        teacher_profile_id=teacher_profile.id, day_of_week=1, start_time="10:00", end_time="12:00"
    )
    db.add(rule)
    db.commit()
    return rule


@pytest.fixture
def fake_calendar() -> FakeGoogleCalendarClient:
    return FakeGoogleCalendarClient()


@pytest.fixture
def calendar_service(db: Session, fake_calendar: FakeGoogleCalendarClient) -> CalendarSyncService:
    return CalendarSyncService(db, fake_calendar, timezone_name="Asia/Hong_Kong")


@pytest.fixture
def notification_service(db: Session) -> NotificationService:
    return NotificationService(db)


@pytest.fixture
def booking_service(
    db: Session,
    notification_service: NotificationService,
    calendar_service: CalendarSyncService,
) -> BookingService:
    return BookingService(
        db,
        notification_service=notification_service,
        calendar_service=calendar_service,
        enforce_availability=True,
        slot_increment_minutes=30,
    )


@pytest.fixture
def make_booking(db: Session, customer: User, teacher_profile: TeacherProfile, service: Service):
    """Insert a booking row directly, bypassing BookingService checks."""

    def _make(
        start_time: str = "10:00",
        end_time: str = "11:00",
        booking_date: date = MONDAY,
        status: BookingStatus = BookingStatus.PENDING,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        user: User = customer,
    ) -> Booking:
        booking = Booking(
            user_id=user.id,
            teacher_profile_id=teacher_profile.id,
            service_id=service.id,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            status=status.value,
            payment_status=payment_status.value,
            total_amount=service.price,
            currency=service.currency,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make
