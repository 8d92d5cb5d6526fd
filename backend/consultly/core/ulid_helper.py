"""ULID checks for identifiers arriving in URLs."""

from __future__ import annotations

from ulid import ULID

ULID_LENGTH = 26


def is_valid_ulid(value: str) -> bool:
    """Whether ``value`` is a canonical 26-character ULID string."""
    if len(value) != ULID_LENGTH:
        return False
    try:
        ULID.from_str(value)
    except ValueError:
        return False
    return True
