"""Contest entry voting endpoint."""

from __future__ import annotations

import pytest

from app.models.contest import Contest, ContestEntry
from app.services.roles import remove_role
from tests.conftest import SyncASGITestClient, bearer


@pytest.fixture()
def entry_id(db_session, user_factory) -> int:
    owner = user_factory("owner@example.com", username="owner")
    contest = Contest(title="Best listing photo")
    db_session.add(contest)
    db_session.flush()
    entry = ContestEntry(contest_id=contest.id, user_id=owner.id, votes_count=0)
    db_session.add(entry)
    db_session.commit()
    return entry.id


def _vote(client: SyncASGITestClient, token: str, entry_id: int):
    return client.post("/api/contests-entries-votes", json={"entry_id": entry_id}, headers=bearer(token))


def test_vote_and_duplicate(client: SyncASGITestClient, logged_in_user, entry_id: int) -> None:
    _user, token = logged_in_user

    first = _vote(client, token, entry_id)
    second = _vote(client, token, entry_id)

    assert first.status_code == 201
    assert first.json()["data"]["vote"] == {
        "id": first.json()["data"]["vote"]["id"],
        "entry_id": entry_id,
        "votes_count": 1,
    }
    assert second.status_code == 409
    assert second.json()["message"] == "You have already voted for this entry."


def test_self_vote_forbidden(client: SyncASGITestClient, entry_id: int) -> None:
    response = client.post("/api/login", json={"email": "owner@example.com", "password": "secret1"})
    token = response.json()["data"]["token"]["plain_text_token"]

    assert _vote(client, token, entry_id).status_code == 403


def test_unknown_entry(client: SyncASGITestClient, logged_in_user) -> None:
    _user, token = logged_in_user

    assert _vote(client, token, 4242).status_code == 404


def test_role_required(client: SyncASGITestClient, logged_in_user, db_session, entry_id: int) -> None:
    user, token = logged_in_user
    remove_role(db_session, user, "user")
    db_session.commit()

    response = _vote(client, token, entry_id)

    assert response.status_code == 403
    assert response.json()["message"] == "You are not allowed to perform this action."


def test_requires_authentication(client: SyncASGITestClient, entry_id: int) -> None:
    response = client.post("/api/contests-entries-votes", json={"entry_id": entry_id})

    assert response.status_code == 401
