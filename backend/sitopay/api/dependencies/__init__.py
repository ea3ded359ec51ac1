"""FastAPI dependencies shared by the v1 routes."""

from .auth import get_current_active_user, get_current_active_user_optional

__all__ = ["get_current_active_user", "get_current_active_user_optional"]
