"""Password reset token lifecycle."""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import as_utc, get_password_hash, hash_token, random_string, token_matches, utcnow
from app.models.password_reset_token import PasswordResetToken
from app.models.user import User
from app.services import email
from app.services.email_verification import build_frontend_link
from app.services.users import UserNotFoundError, get_user_by_email

logger = logging.getLogger(__name__)

RESET_TOKEN_LENGTH = 64


class PasswordResetError(Exception):
    """Base class for password reset failures."""


class PasswordResetTokenInvalidError(PasswordResetError):
    """Raised when no reset token matches the email/token pair."""


class PasswordResetTokenExpiredError(PasswordResetError):
    """Raised when the reset token is older than the configured lifetime."""


def issue_password_reset_token(db: Session, email_address: str) -> str:
    """Store a new reset token for the address, replacing any previous one."""

    raw_token = random_string(RESET_TOKEN_LENGTH)
    record = db.get(PasswordResetToken, email_address)
    if record is None:
        record = PasswordResetToken(email=email_address)
        db.add(record)
    record.token_hash = hash_token(raw_token)
    record.created_at = utcnow()
    db.flush()
    return raw_token


def build_password_reset_link(token: str, email_address: str) -> str:
    return build_frontend_link("/reset-password", {"token": token, "email": email_address})


def request_password_reset(
    db: Session,
    email_address: str,
    *,
    background_tasks: BackgroundTasks | None = None,
) -> bool:
    """Issue a reset token and queue the instructions email."""

    user = get_user_by_email(db, email_address)
    if user is None:
        raise UserNotFoundError("The selected email is invalid.")

    raw_token = issue_password_reset_token(db, user.email)
    db.commit()

    return email.queue_email(
        email.send_password_reset_email,
        user.email,
        build_password_reset_link(raw_token, user.email),
        background_tasks=background_tasks,
    )


def reset_password(db: Session, email_address: str, token: str, new_password: str) -> User:
    """Consume a reset token and set a new password."""

    user = get_user_by_email(db, email_address)
    record = db.get(PasswordResetToken, user.email) if user is not None else None
    if user is None or record is None or not token_matches(token, record.token_hash):
        raise PasswordResetTokenInvalidError("This password reset token is invalid.")

    lifetime = timedelta(minutes=settings.password_reset_token_expiry_minutes)
    if as_utc(record.created_at) + lifetime <= utcnow():
        db.delete(record)
        db.commit()
        raise PasswordResetTokenExpiredError("This password reset token has expired.")

    user.hashed_password = get_password_hash(new_password)
    db.delete(record)
    db.commit()
    db.refresh(user)
    logger.info("Password reset for user %s", user.id)
    return user


__all__ = [
    "PasswordResetError",
    "PasswordResetTokenExpiredError",
    "PasswordResetTokenInvalidError",
    "RESET_TOKEN_LENGTH",
    "build_password_reset_link",
    "issue_password_reset_token",
    "request_password_reset",
    "reset_password",
]
