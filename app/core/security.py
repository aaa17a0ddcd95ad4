"""Security helpers for password hashing and opaque token generation."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import string
from datetime import datetime, timezone

from passlib.context import CryptContext


_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_ALPHANUMERIC = string.ascii_letters + string.digits


def get_password_hash(password: str) -> str:
    """Hash a plaintext password using a secure bcrypt context."""
    return _pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a plaintext password against a hashed password."""

    if not hashed_password:
        return False
    return _pwd_context.verify(plain_password, hashed_password)


def random_string(length: int) -> str:
    """Return a cryptographically random alphanumeric string."""

    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def hash_token(raw_token: str) -> str:
    """Digest an opaque token for storage."""

    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def token_matches(raw_token: str, token_hash: str) -> bool:
    """Compare a raw token against a stored digest in constant time."""

    return hmac.compare_digest(hash_token(raw_token), token_hash)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware in UTC.

    SQLite hands back naive values for timezone-aware columns.
    """

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


__all__ = [
    "as_utc",
    "get_password_hash",
    "hash_token",
    "random_string",
    "token_matches",
    "utcnow",
    "verify_password",
]
