# backend/consultly/services/availability_service.py
"""
Availability Service for Consultly

A teacher's weekly schedule is a list of (weekday, start, end) windows.
Saving always replaces the whole schedule in one transaction; there is no
per-rule editing. Only the owning teacher may write, anyone may read.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..models.availability import AvailabilityRule
from ..models.teacher_profile import TeacherProfile
from ..models.user import User
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..schemas.availability import AvailabilityRuleIn
from ..utils.time_helpers import is_valid_hhmm
from .base import BaseService

logger = logging.getLogger(__name__)

RuleInput = Union[AvailabilityRuleIn, Mapping[str, Any]]


def _field(rule: RuleInput, name: str, default: Any = None) -> Any:
    if isinstance(rule, Mapping):
        return rule.get(name, default)
    return getattr(rule, name, default)


class AvailabilityService(BaseService):
    def __init__(self, db: Session, repository: Optional[AvailabilityRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.teacher_repository = RepositoryFactory.create_base_repository(db, TeacherProfile)

    @BaseService.measure_operation("get_availability")
    def get_availability(self, teacher_profile_id: str) -> List[AvailabilityRule]:
        """All rules for a teacher, ordered by weekday then start time."""
        if self.teacher_repository.get_by_id(teacher_profile_id) is None:
            raise NotFoundException("Teacher not found")
        return self.repository.get_rules(teacher_profile_id, active_only=False)

    @BaseService.measure_operation("set_availability")
    def set_availability(self, actor: User, rules: Iterable[RuleInput]) -> List[AvailabilityRule]:
        """
        Replace the actor's weekly schedule.

        Raises:
            ForbiddenException: The actor has no teacher profile
            ValidationException: A rule has a bad weekday, malformed time or
                a start that is not before its end
        """
        profile = self.teacher_repository.find_one_by(user_id=actor.id)
        if profile is None:
            raise ForbiddenException("Only teachers can set availability")

        rows = [self._validate_rule(index, rule) for index, rule in enumerate(rules)]

        with self.transaction():
            self.repository.delete_all_for_teacher(profile.id)
            created = self.repository.bulk_create(
                [{**row, "teacher_profile_id": profile.id} for row in rows]
            )

        self.log_operation(
            "set_availability", teacher_profile_id=profile.id, rule_count=len(created)
        )
        return self.repository.get_rules(profile.id, active_only=False)

    @staticmethod
    def _validate_rule(index: int, rule: RuleInput) -> dict:
        day_of_week = _field(rule, "day_of_week")
        start_time = _field(rule, "start_time")
        end_time = _field(rule, "end_time")
        details = {"index": index}

        if not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
            raise ValidationException("day_of_week must be between 0 (Sunday) and 6", details=details)
        if not is_valid_hhmm(start_time) or not is_valid_hhmm(end_time):
            raise ValidationException("Times must be in HH:MM format", details=details)
        if start_time >= end_time:
            raise ValidationException("start_time must be before end_time", details=details)

        return {
            "day_of_week": day_of_week,
            "start_time": start_time,
            "end_time": end_time,
            "is_active": bool(_field(rule, "is_active", True)),
        }
