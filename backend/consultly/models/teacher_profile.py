# backend/consultly/models/teacher_profile.py
"""Teacher profile: the bookable provider behind services and schedules."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class TeacherProfile(Base):
    __tablename__ = "teacher_profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    display_name = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    region = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Recomputed from visible reviews whenever one is added
    total_reviews = Column(Integer, nullable=False, default=0)
    average_rating = Column(Numeric(3, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="teacher_profile")
    services = relationship("Service", back_populates="teacher_profile")
    availability_rules = relationship(
        "AvailabilityRule",
        back_populates="teacher_profile",
        cascade="all, delete-orphan",
        order_by="(AvailabilityRule.day_of_week, AvailabilityRule.start_time)",
    )

    def __repr__(self) -> str:
        return f"<TeacherProfile {self.id} {self.display_name}>"
