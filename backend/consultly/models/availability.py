# backend/consultly/models/availability.py
"""
Weekly recurring availability.

Each row is one window on one weekday ("Monday 10:00-12:00"). A teacher's
schedule is replaced wholesale on save, so rows carry no history.
Days follow the 0 = Sunday convention used by the booking UI.
"""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class AvailabilityRule(Base):
    __tablename__ = "availability_rules"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_profile_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week = Column(Integer, nullable=False)
    # "HH:MM" strings compare correctly as text
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    teacher_profile = relationship("TeacherProfile", back_populates="availability_rules")

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_availability_day_range"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
        Index("ix_availability_teacher_day", "teacher_profile_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityRule day={self.day_of_week} {self.start_time}-{self.end_time}>"
