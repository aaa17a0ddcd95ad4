"""API dependency exports."""

from app.db.session import get_db

from .auth import get_current_access_token, require_active_user, require_role

__all__ = [
    "get_current_access_token",
    "get_db",
    "require_active_user",
    "require_role",
]
