# backend/consultly/services/slot_generator.py
"""
Bookable slot generation from weekly availability rules.

Pure functions with no database access. A candidate start is emitted every
``increment_minutes`` from a rule's start for as long as a whole session of
``duration_minutes`` still fits before the rule's end. For a window of S
minutes and a session of D minutes that is ``(S - D) // increment + 1``
candidates when D <= S, and none otherwise.

Overlapping rules on the same day each contribute their own candidates, so
the raw output can repeat a start. ``unique_slots`` collapses repeats for
callers that present slots to users.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Protocol

from ..core.constants import SLOT_INCREMENT_MINUTES
from ..utils.time_helpers import day_of_week_sunday_zero, format_hhmm, to_minutes


class RuleLike(Protocol):
    day_of_week: int
    start_time: str
    end_time: str


def generate_slots(
    rules: Iterable[RuleLike],
    duration_minutes: int,
    increment_minutes: int = SLOT_INCREMENT_MINUTES,
) -> List[str]:
    """Candidate "HH:MM" starts for every rule, in rule order."""
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if increment_minutes <= 0:
        raise ValueError("increment_minutes must be positive")

    slots: List[str] = []
    for rule in rules:
        window_start = to_minutes(rule.start_time)
        window_end = to_minutes(rule.end_time)
        candidate = window_start
        while candidate + duration_minutes <= window_end:
            slots.append(format_hhmm(candidate))
            candidate += increment_minutes
    return slots


def generate_slots_for_date(
    rules: Iterable[RuleLike],
    target_date: date,
    duration_minutes: int,
    increment_minutes: int = SLOT_INCREMENT_MINUTES,
) -> List[str]:
    """Slots from the active rules whose weekday (0 = Sunday) matches ``target_date``."""
    weekday = day_of_week_sunday_zero(target_date)
    day_rules = [
        rule
        for rule in rules
        if rule.day_of_week == weekday and getattr(rule, "is_active", True)
    ]
    return generate_slots(day_rules, duration_minutes, increment_minutes)


def unique_slots(slots: Iterable[str]) -> List[str]:
    """Drop repeated starts, keeping first-seen order."""
    return list(dict.fromkeys(slots))
