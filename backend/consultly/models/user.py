# backend/consultly/models/user.py
"""
User model for Consultly.

A single account table covers end users, teachers and admins. Teachers own
a TeacherProfile which is the "provider" every booking points at.
"""

from __future__ import annotations

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    teacher_profile = relationship(
        "TeacherProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('user', 'teacher', 'admin')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    @property
    def is_teacher(self) -> bool:
        return self.role == RoleName.TEACHER.value
