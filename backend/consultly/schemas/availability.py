# backend/consultly/schemas/availability.py
"""Weekly availability schemas (0 = Sunday ... 6 = Saturday)."""

from __future__ import annotations

from typing import List

from pydantic import Field, field_validator, model_validator

from ..utils.time_helpers import is_valid_hhmm
from ._strict_base import StrictModel, StrictRequestModel


class AvailabilityRuleIn(StrictRequestModel):
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str
    end_time: str
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        if not is_valid_hhmm(v):
            raise ValueError("time must be HH:MM")
        return v

    @model_validator(mode="after")
    def _ordered(self) -> "AvailabilityRuleIn":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityUpdate(StrictRequestModel):
    rules: List[AvailabilityRuleIn]


class AvailabilityRuleResponse(StrictModel):
    id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool


class AvailabilityResponse(StrictModel):
    teacher_profile_id: str
    rules: List[AvailabilityRuleResponse]
