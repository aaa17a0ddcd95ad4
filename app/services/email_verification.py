"""Helpers for email verification token lifecycle."""

from __future__ import annotations

from datetime import timedelta
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import as_utc, hash_token, random_string, utcnow
from app.models.email_verification_token import EmailVerificationToken
from app.models.user import User

VERIFICATION_TOKEN_LENGTH = 64


class EmailVerificationError(Exception):
    """Base class for email verification failures."""


class EmailVerificationTokenInvalidError(EmailVerificationError):
    """Raised when a token cannot be matched to a record."""


class EmailVerificationTokenExpiredError(EmailVerificationError):
    """Raised when attempting to verify with an expired token."""


def issue_verification_token(
    db: Session,
    user: User,
    *,
    replace_existing: bool = False,
) -> str:
    """Create and persist a new verification token for the user.

    When ``replace_existing`` is set every previous token row of the user is
    deleted first so that only the latest link works. The raw token value is
    returned for inclusion in the outbound email.
    """

    if replace_existing:
        db.execute(
            delete(EmailVerificationToken).where(EmailVerificationToken.user_id == user.id)
        )

    raw_token = random_string(VERIFICATION_TOKEN_LENGTH)
    token_record = EmailVerificationToken(
        user_id=user.id,
        token_hash=hash_token(raw_token),
        expires_at=utcnow()
        + timedelta(minutes=settings.email_verification_token_expiry_minutes),
    )
    db.add(token_record)
    db.flush()
    return raw_token


def verify_email_token(db: Session, raw_token: str) -> User:
    """Mark the owner of ``raw_token`` as verified and consume the token."""

    statement = select(EmailVerificationToken).where(
        EmailVerificationToken.token_hash == hash_token(raw_token),
    )
    token = db.execute(statement).scalar_one_or_none()
    if token is None:
        raise EmailVerificationTokenInvalidError("Invalid verification token.")

    now = utcnow()
    if as_utc(token.expires_at) <= now:
        raise EmailVerificationTokenExpiredError("Verification token has expired.")

    user = token.user
    if user is None:
        raise EmailVerificationTokenInvalidError("Token is not associated with a user.")

    if user.email_verified_at is None:
        user.email_verified_at = now
    db.delete(token)
    db.flush()
    return user


def build_verification_link(token: str) -> str:
    """Construct the externally visible verification link for a token."""

    return build_frontend_link("/verify-email", {"token": token})


def build_frontend_link(path: str, params: dict[str, str]) -> str:
    split = urlsplit(settings.frontend_url.rstrip("/") + path)
    query_params = dict(parse_qsl(split.query, keep_blank_values=True))
    query_params.update(params)
    return urlunsplit(
        (split.scheme, split.netloc, split.path, urlencode(query_params), split.fragment)
    )


__all__ = [
    "EmailVerificationError",
    "EmailVerificationTokenExpiredError",
    "EmailVerificationTokenInvalidError",
    "VERIFICATION_TOKEN_LENGTH",
    "build_frontend_link",
    "build_verification_link",
    "issue_verification_token",
    "verify_email_token",
]
