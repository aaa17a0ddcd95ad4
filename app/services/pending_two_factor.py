"""Encrypted cookie carrying a password-verified login awaiting its second factor."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Response

from app.core.config import settings
from app.core.encryption import DecryptionError, decrypt_json, encrypt_json

REQUIRED_FLAG = "2fa_required"


class PendingTwoFactorError(Exception):
    """Base class for pending two-factor cookie failures."""


class InvalidPendingSessionError(PendingTwoFactorError):
    """Raised when the cookie is missing, tampered with or expired."""


class TwoFactorNotRequiredError(PendingTwoFactorError):
    """Raised when the cookie does not flag a pending second factor."""


@dataclass(frozen=True)
class PendingTwoFactorState:
    email: str
    session_id: str | None


def _ttl_seconds() -> int:
    return settings.pending_two_factor_ttl_minutes * 60


def encode_pending_state(email: str, session_id: str) -> str:
    return encrypt_json({"email": email, REQUIRED_FLAG: True, "session_id": session_id})


def decode_pending_state(cookie_value: str | None) -> PendingTwoFactorState:
    """Decrypt the cookie, rejecting anything older than the configured TTL."""

    if not cookie_value:
        raise InvalidPendingSessionError("Invalid session.")
    try:
        payload = decrypt_json(cookie_value, ttl=_ttl_seconds())
    except DecryptionError as exc:
        raise InvalidPendingSessionError("Invalid session.") from exc

    if not isinstance(payload, dict):
        raise InvalidPendingSessionError("Invalid session.")
    if payload.get(REQUIRED_FLAG) is not True:
        raise TwoFactorNotRequiredError("Two-factor authentication is not required.")

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        raise InvalidPendingSessionError("Invalid session.")
    return PendingTwoFactorState(email=email, session_id=payload.get("session_id"))


def set_pending_cookie(response: Response, email: str, session_id: str) -> None:
    response.set_cookie(
        key=settings.pending_two_factor_cookie_name,
        value=encode_pending_state(email, session_id),
        max_age=_ttl_seconds(),
        path="/",
        secure=settings.session_secure_cookie,
        httponly=settings.session_http_only,
        samesite=settings.session_same_site,
    )


def clear_pending_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.pending_two_factor_cookie_name,
        path="/",
        secure=settings.session_secure_cookie,
        httponly=settings.session_http_only,
        samesite=settings.session_same_site,
    )


__all__ = [
    "InvalidPendingSessionError",
    "PendingTwoFactorError",
    "PendingTwoFactorState",
    "REQUIRED_FLAG",
    "TwoFactorNotRequiredError",
    "clear_pending_cookie",
    "decode_pending_state",
    "encode_pending_state",
    "set_pending_cookie",
]
