"""Repository helpers for interacting with user records."""

from __future__ import annotations

import logging
import re
from typing import Optional, TYPE_CHECKING

from fastapi import BackgroundTasks
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash, random_string, utcnow, verify_password
from app.models.user import User
from app.schemas.auth import PasswordUpdateRequest, UserCreate
from app.services import email
from app.services.email_verification import build_verification_link, issue_verification_token
from app.services.roles import assign_role

if TYPE_CHECKING:
    from app.integrations.oauth.base import ExternalIdentity

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 10


class UserAlreadyExistsError(Exception):
    """Raised when a unique user attribute is already taken."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"The {field} '{value}' has already been taken.")
        self.field = field
        self.value = value


class UserNotFoundError(Exception):
    """Raised when no account matches the given email address."""


class InvalidCredentialsError(Exception):
    """Raised when an email/password pair does not match a user."""


class IncorrectPasswordError(InvalidCredentialsError):
    """Raised when a provided current password does not match the stored hash."""


class EmailUnverifiedError(Exception):
    """Raised when an unverified account tries to log in."""


class EmailAlreadyVerifiedError(Exception):
    """Raised when requesting a verification email for a verified account."""


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Fetch a user by email address."""

    normalized_email = _normalize_email(email)
    statement = select(User).where(User.email == normalized_email)
    result = db.execute(statement)
    return result.scalar_one_or_none()


def _find_conflict(db: Session, email: str, username: str, phone: str | None) -> Optional[tuple[str, str]]:
    clauses = [User.email == email, User.username == username]
    if phone:
        clauses.append(User.phone == phone)
    for existing in db.execute(select(User).where(or_(*clauses))).scalars():
        if existing.email == email:
            return "email", email
        if existing.username == username:
            return "username", username
        if phone and existing.phone == phone:
            return "phone", phone
    return None


def create_user(
    db: Session,
    user_in: UserCreate,
    *,
    background_tasks: BackgroundTasks | None = None,
    send_email: bool = True,
) -> User:
    """Register a new account, assign the default role and queue verification."""

    normalized_email = _normalize_email(str(user_in.email))
    phone = user_in.phone or None
    conflict = _find_conflict(db, normalized_email, user_in.username, phone)
    if conflict is not None:
        raise UserAlreadyExistsError(*conflict)

    user = User(
        username=user_in.username,
        email=normalized_email,
        phone=phone,
        hashed_password=get_password_hash(user_in.password),
    )

    db.add(user)
    raw_token: str | None = None
    try:
        db.flush()
        assign_role(db, user, settings.default_user_role)
        if send_email:
            raw_token = issue_verification_token(db, user)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        conflict = _find_conflict(db, normalized_email, user_in.username, phone)
        field, value = conflict or ("email", normalized_email)
        raise UserAlreadyExistsError(field, value) from exc

    db.refresh(user)
    logger.info("Registered user %s", user.id)

    if raw_token:
        email.queue_email(
            email.send_verification_email,
            user.email,
            build_verification_link(raw_token),
            background_tasks=background_tasks,
        )

    return user


def resend_verification(
    db: Session,
    email_address: str,
    *,
    background_tasks: BackgroundTasks | None = None,
) -> User:
    """Replace the user's verification token and send a fresh link."""

    user = get_user_by_email(db, email_address)
    if user is None:
        raise UserNotFoundError("The selected email is invalid.")
    if user.is_email_verified:
        raise EmailAlreadyVerifiedError("Email is already verified.")

    raw_token = issue_verification_token(db, user, replace_existing=True)
    db.commit()

    email.queue_email(
        email.send_verification_email,
        user.email,
        build_verification_link(raw_token),
        background_tasks=background_tasks,
    )
    return user


def authenticate(db: Session, email_address: str, password: str) -> User:
    """Return the verified user owning the credentials."""

    user = get_user_by_email(db, email_address)
    if user is None or not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError("Invalid credentials.")
    if not user.is_email_verified:
        raise EmailUnverifiedError("Email address is not verified.")
    return user


def change_user_password(
    db: Session,
    user: User,
    request: PasswordUpdateRequest,
) -> User:
    """Change the user's password after verifying the current one.

    Issued access tokens stay valid until they expire.
    """

    if not verify_password(request.current_password, user.hashed_password):
        raise IncorrectPasswordError("Current password is incorrect.")

    user.hashed_password = get_password_hash(request.new_password)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _derive_username(db: Session, identity: "ExternalIdentity") -> str:
    source = identity.display_name or identity.email.split("@", 1)[0]
    base = re.sub(r"[^A-Za-z0-9]", "", source)[:USERNAME_MAX_LENGTH] or "user"
    candidate = base
    while db.execute(select(User.id).where(User.username == candidate)).first() is not None:
        candidate = base[: USERNAME_MAX_LENGTH - 4] + random_string(4)
    return candidate


def find_or_create_google_user(db: Session, identity: "ExternalIdentity") -> User:
    """Resolve a Google identity to an account, linking or creating one."""

    user = db.execute(
        select(User).where(User.google_id == identity.external_id)
    ).scalar_one_or_none()
    if user is not None:
        return user

    user = get_user_by_email(db, identity.email)
    if user is not None:
        user.google_id = identity.external_id
        if user.email_verified_at is None:
            user.email_verified_at = utcnow()
        db.commit()
        db.refresh(user)
        logger.info("Linked Google account to user %s", user.id)
        return user

    user = User(
        username=_derive_username(db, identity),
        email=_normalize_email(identity.email),
        google_id=identity.external_id,
        hashed_password=get_password_hash(random_string(40)),
        email_verified_at=utcnow(),
    )
    db.add(user)
    db.flush()
    assign_role(db, user, settings.default_user_role)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s from Google sign-in", user.id)
    return user


__all__ = [
    "EmailAlreadyVerifiedError",
    "EmailUnverifiedError",
    "IncorrectPasswordError",
    "InvalidCredentialsError",
    "USERNAME_MAX_LENGTH",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "authenticate",
    "change_user_password",
    "create_user",
    "find_or_create_google_user",
    "get_user_by_email",
    "resend_verification",
]
