"""Tests for bearer token issuance and resolution."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from app.core.security import as_utc
from app.models.access_token import AccessToken
from app.services.access_tokens import (
    AccessTokenExpiredError,
    UnauthenticatedError,
    extend_latest_token,
    issue_access_token,
    parse_token,
    resolve_bearer_token,
    revoke_access_token,
)


def test_issue_returns_composite_plaintext_once(user_factory, db_session: Session) -> None:
    user = user_factory()

    issued = issue_access_token(db_session, user)
    db_session.commit()

    token_id, secret = parse_token(issued.plain_text_token)
    assert token_id == issued.id
    assert re.fullmatch(r"[A-Za-z0-9]{40}", secret)
    stored = db_session.get(AccessToken, issued.id)
    assert stored.token_hash != secret
    assert secret not in stored.token_hash


def test_issue_sets_seven_day_expiry(user_factory, db_session: Session) -> None:
    user = user_factory()
    before = datetime.now(timezone.utc)

    issued = issue_access_token(db_session, user)

    expires_at = as_utc(issued.expires_at)
    assert before + timedelta(days=7) - timedelta(seconds=5) <= expires_at
    assert expires_at <= datetime.now(timezone.utc) + timedelta(days=7)


def test_extend_latest_only_touches_newest_token(user_factory, db_session: Session) -> None:
    user = user_factory()
    first = issue_access_token(db_session, user)
    first_expiry = as_utc(first.expires_at)
    second = issue_access_token(db_session, user)
    new_expiry = datetime.now(timezone.utc) + timedelta(days=30)

    extended = extend_latest_token(db_session, user, new_expiry)

    assert extended.id == second.id
    assert as_utc(second.expires_at) == new_expiry
    assert as_utc(first.expires_at) == first_expiry


def test_resolve_bearer_token_returns_owner(user_factory, db_session: Session) -> None:
    user = user_factory()
    issued = issue_access_token(db_session, user)

    token = resolve_bearer_token(db_session, issued.plain_text_token)

    assert token.user.id == user.id
    assert token.last_used_at is not None


@pytest.mark.parametrize("value", [None, "", "garbage", "abc|secret", "12", "12|"])
def test_resolve_rejects_malformed(db_session: Session, value) -> None:
    with pytest.raises(UnauthenticatedError):
        resolve_bearer_token(db_session, value)


def test_resolve_rejects_wrong_secret(user_factory, db_session: Session) -> None:
    issued = issue_access_token(db_session, user_factory())

    with pytest.raises(UnauthenticatedError):
        resolve_bearer_token(db_session, f"{issued.id}|{'x' * 40}")


def test_revoked_token_is_unauthenticated(user_factory, db_session: Session) -> None:
    issued = issue_access_token(db_session, user_factory())
    db_session.commit()

    assert revoke_access_token(db_session, issued.id) is True
    db_session.commit()

    with pytest.raises(UnauthenticatedError):
        resolve_bearer_token(db_session, issued.plain_text_token)


def test_expired_token_is_rejected(user_factory, db_session: Session) -> None:
    user = user_factory()
    issued = issue_access_token(db_session, user)
    extend_latest_token(db_session, user, datetime.now(timezone.utc) - timedelta(minutes=1))
    db_session.commit()

    with pytest.raises(AccessTokenExpiredError):
        resolve_bearer_token(db_session, issued.plain_text_token)
