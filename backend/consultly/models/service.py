# backend/consultly/models/service.py
"""
Service model for Consultly.

A service is one consultation type a teacher offers (e.g. "Tarot reading,
60 minutes"). Price and currency are copied onto each booking at creation
time, so later edits never change existing bookings.

Supports soft delete via is_active flag to preserve booking history.
"""

from __future__ import annotations

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.constants import DEFAULT_CURRENCY
from ..database import Base

logger = logging.getLogger(__name__)


class Service(Base):
    """
    Attributes:
        teacher_profile_id: The provider offering this service
        duration_minutes: Length of one session; drives slot generation
        price: Price of one session in ``currency``
        is_online / is_in_person: Delivery modes offered
        is_active: Whether the service can currently be booked
    """

    __tablename__ = "services"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_profile_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    is_online = Column(Boolean, nullable=False, default=True)
    is_in_person = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    teacher_profile = relationship("TeacherProfile", back_populates="services")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
        CheckConstraint("price >= 0", name="check_service_price_non_negative"),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        logger.debug(
            f"Creating service '{kwargs.get('name')}' for teacher profile {kwargs.get('teacher_profile_id')}"
        )

    def __repr__(self):
        status = " (inactive)" if not self.is_active else ""
        return f"<Service {self.name} {self.duration_minutes}min {self.currency}{self.price}{status}>"
