"""Role lookup and assignment helpers."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.role import Role
from app.models.user import User

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def get_role(db: Session, name: str) -> Optional[Role]:
    statement = select(Role).where(Role.name == name)
    return db.execute(statement).scalar_one_or_none()


def ensure_role(db: Session, name: str) -> Role:
    """Return the named role, creating it when it does not exist yet."""

    role = get_role(db, name)
    if role is None:
        role = Role(name=name)
        db.add(role)
        db.flush()
        logger.info("Created role %s", name)
    return role


def assign_role(db: Session, user: User, name: str) -> bool:
    """Attach a role to the user. Returns ``False`` if it was already present."""

    if user.has_role(name):
        return False
    user.roles.append(ensure_role(db, name))
    db.flush()
    return True


def remove_role(db: Session, user: User, name: str) -> bool:
    """Detach a role from the user. Returns ``False`` if it was not present."""

    for role in list(user.roles):
        if role.name == name:
            user.roles.remove(role)
            db.flush()
            return True
    return False


__all__ = ["ADMIN_ROLE", "assign_role", "ensure_role", "get_role", "remove_role"]
