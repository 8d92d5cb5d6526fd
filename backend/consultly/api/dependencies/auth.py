# backend/consultly/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

User rows are loaded with ``asyncio.to_thread`` so the sync session never
blocks the event loop.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...models.user import User
from .database import get_db

logger = logging.getLogger(__name__)


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    user = await asyncio.to_thread(lambda: db.query(User).filter(User.id == user_id).first())
    if user is None:
        logger.warning(f"Token references unknown user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user
