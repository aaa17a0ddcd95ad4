"""Completing a login: token issuance plus session bookkeeping."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.models.user import User
from app.models.user_session import UserSession
from app.services.access_tokens import IssuedAccessToken, issue_access_token
from app.services.user_sessions import generate_session_id, record_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None
    device_type: str | None = None


@dataclass(frozen=True)
class LoginResult:
    user: User
    token: IssuedAccessToken
    session: UserSession


def requires_second_factor(user: User) -> bool:
    return user.has_two_factor_enabled


def start_pending_login(user: User) -> str:
    """Session id reserved for the login until the second factor is supplied."""

    logger.info("Second factor required for user %s", user.id)
    return generate_session_id()


def complete_login(
    db: Session,
    user: User,
    client: ClientInfo,
    *,
    session_id: str | None = None,
) -> LoginResult:
    """Issue a bearer token and record the device session in one transaction."""

    issued = issue_access_token(db, user)
    session = record_session(
        db,
        user,
        token_plaintext=issued.plain_text_token,
        expires_at=issued.expires_at,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
        device_type=client.device_type,
        session_id=session_id,
    )
    db.commit()
    logger.info("User %s logged in (session %s)", user.id, session.id)
    return LoginResult(user=user, token=issued, session=session)


__all__ = [
    "ClientInfo",
    "LoginResult",
    "complete_login",
    "requires_second_factor",
    "start_pending_login",
]
