"""Time-based one-time password setup, verification and recovery codes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import pyotp
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.encryption import decrypt_json, decrypt_value, encrypt_json, encrypt_value
from app.core.security import random_string, utcnow, verify_password
from app.models.user import User
from app.services.users import IncorrectPasswordError

logger = logging.getLogger(__name__)

RECOVERY_CODE_COUNT = 8
RECOVERY_SEGMENT_LENGTH = 10


class TwoFactorError(Exception):
    """Base class for two-factor failures."""


class TwoFactorAlreadyEnabledError(TwoFactorError):
    """Raised when activating an account whose setup is already confirmed."""


class TwoFactorNotSetUpError(TwoFactorError):
    """Raised when no secret has been generated for the user."""


class TwoFactorNotEnabledError(TwoFactorError):
    """Raised when disabling two-factor on an account without a secret."""


class InvalidTwoFactorCodeError(TwoFactorError):
    """Raised when a submitted one-time code does not verify."""


@dataclass(frozen=True)
class TwoFactorSetup:
    secret: str
    provisioning_uri: str


def generate_recovery_code() -> str:
    return f"{random_string(RECOVERY_SEGMENT_LENGTH)}-{random_string(RECOVERY_SEGMENT_LENGTH)}"


def generate_recovery_codes(count: int = RECOVERY_CODE_COUNT) -> list[str]:
    return [generate_recovery_code() for _ in range(count)]


def get_secret(user: User) -> Optional[str]:
    return decrypt_value(user.two_factor_secret)


def provisioning_uri(user: User, secret: str) -> str:
    """``otpauth://`` URI for authenticator apps."""

    return pyotp.TOTP(secret).provisioning_uri(
        name=user.email,
        issuer_name=settings.two_factor_issuer,
    )


def _load_recovery_codes(user: User) -> list[str]:
    if user.two_factor_recovery_codes is None:
        return []
    codes = decrypt_json(user.two_factor_recovery_codes)
    return [str(code) for code in codes or []]


def _store_recovery_codes(user: User, codes: list[str]) -> None:
    user.two_factor_recovery_codes = encrypt_json(codes)


def begin_setup(db: Session, user: User, password: str) -> Optional[TwoFactorSetup]:
    """Generate a new secret after re-checking the password.

    Returns ``None`` when two-factor is already active; the account is left
    untouched in that case. Otherwise any previous confirmation and recovery
    codes are discarded.
    """

    if not verify_password(password, user.hashed_password):
        raise IncorrectPasswordError("Password is incorrect.")
    if user.has_two_factor_enabled:
        return None

    secret = pyotp.random_base32()
    user.two_factor_secret = encrypt_value(secret)
    user.two_factor_recovery_codes = None
    user.two_factor_confirmed_at = None
    db.commit()
    db.refresh(user)
    logger.info("Started two-factor setup for user %s", user.id)
    return TwoFactorSetup(secret=secret, provisioning_uri=provisioning_uri(user, secret))


def verify_code(user: User, code: str) -> bool:
    """Check ``code`` against the user's secret within the allowed time drift."""

    secret = get_secret(user)
    if not secret or not code or not code.isdigit():
        return False
    return pyotp.TOTP(secret).verify(code, valid_window=settings.two_factor_valid_window)


def activate(db: Session, user: User, code: str) -> list[str]:
    """Confirm setup with a valid code and return fresh recovery codes."""

    if user.two_factor_confirmed_at is not None:
        raise TwoFactorAlreadyEnabledError("Two-factor authentication is already enabled.")
    if user.two_factor_secret is None:
        raise TwoFactorNotSetUpError("Two-factor authentication has not been set up.")
    if not verify_code(user, code):
        raise InvalidTwoFactorCodeError("The provided two-factor code is invalid.")

    codes = generate_recovery_codes()
    _store_recovery_codes(user, codes)
    user.two_factor_confirmed_at = utcnow()
    db.commit()
    db.refresh(user)
    logger.info("Two-factor authentication enabled for user %s", user.id)
    return codes


def verify_recovery_code(db: Session, user: User, code: str) -> bool:
    """Consume a recovery code, replacing it with a new one on success."""

    codes = _load_recovery_codes(user)
    if not code or code not in codes:
        return False

    codes[codes.index(code)] = generate_recovery_code()
    _store_recovery_codes(user, codes)
    db.commit()
    db.refresh(user)
    logger.info("Recovery code used by user %s", user.id)
    return True


def get_recovery_codes(user: User) -> list[str]:
    if user.two_factor_secret is None or user.two_factor_recovery_codes is None:
        raise TwoFactorNotSetUpError("Two-factor authentication has not been set up.")
    return _load_recovery_codes(user)


def regenerate_recovery_codes(db: Session, user: User) -> list[str]:
    if user.two_factor_secret is None:
        raise TwoFactorNotSetUpError("Two-factor authentication has not been set up.")

    codes = generate_recovery_codes()
    _store_recovery_codes(user, codes)
    db.commit()
    db.refresh(user)
    return codes


def disable(db: Session, user: User) -> None:
    if user.two_factor_secret is None:
        raise TwoFactorNotEnabledError("Two-factor authentication is not enabled.")

    user.two_factor_secret = None
    user.two_factor_recovery_codes = None
    user.two_factor_confirmed_at = None
    db.commit()
    db.refresh(user)
    logger.info("Two-factor authentication disabled for user %s", user.id)


__all__ = [
    "InvalidTwoFactorCodeError",
    "RECOVERY_CODE_COUNT",
    "TwoFactorAlreadyEnabledError",
    "TwoFactorError",
    "TwoFactorNotEnabledError",
    "TwoFactorNotSetUpError",
    "TwoFactorSetup",
    "activate",
    "begin_setup",
    "disable",
    "generate_recovery_code",
    "generate_recovery_codes",
    "get_recovery_codes",
    "get_secret",
    "provisioning_uri",
    "regenerate_recovery_codes",
    "verify_code",
    "verify_recovery_code",
]
