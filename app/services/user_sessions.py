"""Device session bookkeeping."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.encryption import DecryptionError, decrypt_json, encrypt_json
from app.core.security import random_string, utcnow
from app.models.user import User
from app.models.user_session import UserSession
from app.schemas.auth import SessionRead
from app.services.access_tokens import UnauthenticatedError, parse_token

logger = logging.getLogger(__name__)

SESSION_ID_LENGTH = 40


class SessionPayloadError(Exception):
    """Raised when a stored session payload cannot be decoded."""


def generate_session_id() -> str:
    return random_string(SESSION_ID_LENGTH)


def decode_session_payload(payload: str) -> dict[str, Any]:
    """Return the ``{token, expires_at}`` mapping stored in a session row."""

    try:
        data = decrypt_json(payload)
    except DecryptionError as exc:
        raise SessionPayloadError("Session payload could not be decrypted.") from exc
    if not isinstance(data, dict):
        raise SessionPayloadError("Session payload is malformed.")
    return data


def record_session(
    db: Session,
    user: User,
    *,
    token_plaintext: str,
    expires_at: Optional[datetime],
    ip_address: str | None = None,
    user_agent: str | None = None,
    device_type: str | None = None,
    session_id: str | None = None,
) -> UserSession:
    """Store a session for a successful login on a device."""

    if not session_id or db.get(UserSession, session_id) is not None:
        session_id = generate_session_id()

    token_id, _ = parse_token(token_plaintext)
    session = UserSession(
        id=session_id,
        user_id=user.id,
        access_token_id=token_id,
        ip_address=ip_address,
        user_agent=user_agent,
        device_type=device_type,
        payload=encrypt_json(
            {
                "token": token_plaintext,
                "expires_at": expires_at.isoformat() if expires_at else None,
            }
        ),
        last_activity=utcnow(),
    )
    db.add(session)
    db.flush()
    return session


def list_sessions_for_user(db: Session, user: User) -> list[UserSession]:
    statement = (
        select(UserSession)
        .where(UserSession.user_id == user.id)
        .order_by(UserSession.last_activity.desc())
    )
    return list(db.execute(statement).scalars())


def summarize_session(session: UserSession) -> SessionRead:
    """Public view of a session; the embedded token never leaves the server."""

    expires_at: Optional[datetime] = None
    try:
        raw_expiry = decode_session_payload(session.payload).get("expires_at")
        if raw_expiry:
            expires_at = datetime.fromisoformat(raw_expiry)
    except (SessionPayloadError, ValueError):
        logger.warning("Unreadable payload for session %s", session.id)

    return SessionRead(
        id=session.id,
        ip_address=session.ip_address,
        user_agent=session.user_agent,
        device_type=session.device_type,
        last_activity=session.last_activity,
        expires_at=expires_at,
    )


def delete_session_by_token(db: Session, user: User, token_id: int) -> bool:
    """Delete the user's session carrying ``token_id``; no-op when none does."""

    statement = (
        select(UserSession)
        .where(
            UserSession.user_id == user.id,
            UserSession.access_token_id == token_id,
        )
        .order_by(UserSession.last_activity.desc())
    )
    for session in db.execute(statement).scalars():
        try:
            embedded = decode_session_payload(session.payload).get("token") or ""
            embedded_id, _ = parse_token(embedded)
        except (SessionPayloadError, UnauthenticatedError):
            continue
        if embedded_id == token_id:
            db.delete(session)
            db.flush()
            return True
    return False


__all__ = [
    "SESSION_ID_LENGTH",
    "SessionPayloadError",
    "decode_session_payload",
    "delete_session_by_token",
    "generate_session_id",
    "list_sessions_for_user",
    "record_session",
    "summarize_session",
]
