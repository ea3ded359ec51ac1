# backend/sitopay/api/dependencies/auth.py
"""Resolve authenticated emails to User rows."""

import asyncio
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_current_user_optional
from ...database import get_db
from ...models.user import User
from ...repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


async def lookup_user_nonblocking(db: Session, email: str) -> Optional[User]:
    """Look up a user by email in the thread pool, off the event loop."""
    return await asyncio.to_thread(UserRepository(db).get_by_email, email)


async def get_current_active_user(
    current_user_email: str = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated and active user.

    Raises:
        HTTPException: 401 if the user is unknown, 400 if inactive
    """
    user = await lookup_user_nonblocking(db, current_user_email)
    if user is None:
        logger.warning(f"Token subject {current_user_email} has no user record")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user


async def get_current_active_user_optional(
    current_user_email: Optional[str] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Get the current authenticated user if present, otherwise return None.

    Used by endpoints that serve guests and signed-in users alike.
    """
    if not current_user_email:
        return None
    user = await lookup_user_nonblocking(db, current_user_email)
    if user and user.is_active:
        return user
    return None
