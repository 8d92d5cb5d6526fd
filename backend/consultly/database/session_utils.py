"""
Helpers for working with SQLAlchemy sessions in a dialect-agnostic way.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session


def resolve_session_bind(session: Session) -> Optional[Connection | Engine]:
    """Return the engine/connection bound to a session, or None if unbound."""
    try:
        return session.get_bind()
    except Exception:
        return None


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """Return the session's dialect name, falling back to ``default``."""
    bind = resolve_session_bind(session)
    if bind is None:
        return default
    name = getattr(getattr(bind, "dialect", None), "name", None)
    return name or default


def supports_row_locks(session: Session) -> bool:
    """SELECT ... FOR UPDATE is a no-op on SQLite; other dialects honour it."""
    return get_dialect_name(session) != "sqlite"
