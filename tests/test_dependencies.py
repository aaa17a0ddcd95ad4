"""Tests for the bearer token and role dependencies."""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.api.dependencies.auth import get_current_access_token, require_active_user, require_role
from app.core.security import utcnow
from app.services.access_tokens import issue_access_token


def test_resolves_token_and_touches_last_used(db_session, user_factory):
    user = user_factory()
    issued = issue_access_token(db_session, user)
    db_session.commit()

    access_token = get_current_access_token(token=issued.plain_text_token, db=db_session)

    assert access_token.id == issued.id
    assert access_token.last_used_at is not None
    assert require_active_user(access_token=access_token).id == user.id


@pytest.mark.parametrize("token", [None, "", "garbage", "1|wrong-secret"])
def test_rejects_missing_or_invalid_token(db_session, token):
    with pytest.raises(HTTPException) as exc_info:
        get_current_access_token(token=token, db=db_session)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Unauthenticated."
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_rejects_expired_token(db_session, user_factory):
    user = user_factory()
    issued = issue_access_token(db_session, user)
    issued.access_token.expires_at = utcnow() - timedelta(minutes=1)
    db_session.commit()

    with pytest.raises(HTTPException) as exc_info:
        get_current_access_token(token=issued.plain_text_token, db=db_session)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token has expired."


def test_require_role(db_session, user_factory):
    user = user_factory()

    assert require_role("user")(current_user=user) is user
    with pytest.raises(HTTPException) as exc_info:
        require_role("admin")(current_user=user)
    assert exc_info.value.status_code == 403
