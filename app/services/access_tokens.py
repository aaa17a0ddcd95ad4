"""Opaque bearer token issuance and resolution."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import as_utc, hash_token, random_string, token_matches, utcnow
from app.models.access_token import AccessToken
from app.models.user import User

TOKEN_SECRET_LENGTH = 40
TOKEN_SEPARATOR = "|"
DEFAULT_TOKEN_NAME = "auth_token"


class AccessTokenError(Exception):
    """Base class for bearer token failures."""


class UnauthenticatedError(AccessTokenError):
    """Raised when a bearer token is missing, malformed or unknown."""


class AccessTokenExpiredError(AccessTokenError):
    """Raised when a bearer token is past its expiry."""


@dataclass(frozen=True)
class IssuedAccessToken:
    """A freshly created token together with its one-time plaintext form."""

    access_token: AccessToken
    plain_text_token: str

    @property
    def id(self) -> int:
        return self.access_token.id

    @property
    def expires_at(self) -> Optional[datetime]:
        return self.access_token.expires_at


def parse_token(token_string: str) -> tuple[int, str]:
    """Split ``{id}|{secret}`` into its parts."""

    token_id, separator, secret = token_string.partition(TOKEN_SEPARATOR)
    if not separator or not secret or not token_id.isdigit():
        raise UnauthenticatedError("Malformed access token.")
    return int(token_id), secret


def issue_access_token(
    db: Session,
    user: User,
    *,
    name: str = DEFAULT_TOKEN_NAME,
) -> IssuedAccessToken:
    """Create a token for ``user`` valid for the configured number of days."""

    secret = random_string(TOKEN_SECRET_LENGTH)
    token = AccessToken(user_id=user.id, name=name, token_hash=hash_token(secret))
    db.add(token)
    db.flush()

    extend_latest_token(
        db,
        user,
        utcnow() + timedelta(days=settings.access_token_expire_days),
    )
    return IssuedAccessToken(
        access_token=token,
        plain_text_token=f"{token.id}{TOKEN_SEPARATOR}{secret}",
    )


def extend_latest_token(db: Session, user: User, expires_at: datetime) -> Optional[AccessToken]:
    """Set the expiry of the user's most recently created token only."""

    statement = (
        select(AccessToken)
        .where(AccessToken.user_id == user.id)
        .order_by(AccessToken.created_at.desc(), AccessToken.id.desc())
        .limit(1)
    )
    token = db.execute(statement).scalar_one_or_none()
    if token is None:
        return None
    token.expires_at = expires_at
    db.flush()
    return token


def revoke_access_token(db: Session, token_id: int) -> bool:
    result = db.execute(delete(AccessToken).where(AccessToken.id == token_id))
    db.flush()
    return bool(result.rowcount)


def resolve_bearer_token(db: Session, token_string: str | None) -> AccessToken:
    """Return the stored token matching ``token_string`` and touch its usage time."""

    if not token_string:
        raise UnauthenticatedError("Unauthenticated.")

    token_id, secret = parse_token(token_string)
    token = db.get(AccessToken, token_id)
    if token is None or not token_matches(secret, token.token_hash):
        raise UnauthenticatedError("Unauthenticated.")

    now = utcnow()
    if token.expires_at is not None and as_utc(token.expires_at) <= now:
        raise AccessTokenExpiredError("Access token has expired.")

    token.last_used_at = now
    db.flush()
    return token


__all__ = [
    "AccessTokenError",
    "AccessTokenExpiredError",
    "DEFAULT_TOKEN_NAME",
    "IssuedAccessToken",
    "TOKEN_SECRET_LENGTH",
    "UnauthenticatedError",
    "extend_latest_token",
    "issue_access_token",
    "parse_token",
    "resolve_bearer_token",
    "revoke_access_token",
]
