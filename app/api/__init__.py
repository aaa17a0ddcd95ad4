"""Public API package exports."""

from .dependencies import require_active_user, require_role
from .errors import register_exception_handlers

__all__ = ["register_exception_handlers", "require_active_user", "require_role"]
