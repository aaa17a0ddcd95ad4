"""Email verification flow through the API."""

from __future__ import annotations

from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

from sqlalchemy import select

from app.core.security import utcnow
from app.models.email_verification_token import EmailVerificationToken
from tests.conftest import SyncASGITestClient, login


def _token_from(link: str) -> str:
    return parse_qs(urlsplit(link).query)["token"][0]


def _register_alice(client: SyncASGITestClient) -> None:
    response = client.post(
        "/api/register",
        json={
            "username": "alice",
            "email": "alice@example.com",
            "password": "secret1",
            "password_confirmation": "secret1",
        },
    )
    assert response.status_code == 201


def test_verify_then_login(client: SyncASGITestClient, capture_outbound_email) -> None:
    _register_alice(client)
    assert login(client, "alice@example.com").status_code == 403

    link = capture_outbound_email[-1]["link"]
    assert link.startswith("http://localhost:3000/verify-email?token=")
    response = client.get("/api/email/verify", params={"token": _token_from(link)})

    assert response.status_code == 200
    assert response.json()["data"]["user"]["email_verified_at"] is not None
    assert login(client, "alice@example.com").status_code == 200


def test_token_cannot_be_reused(client: SyncASGITestClient, capture_outbound_email) -> None:
    _register_alice(client)
    token = _token_from(capture_outbound_email[-1]["link"])

    assert client.get("/api/email/verify", params={"token": token}).status_code == 200
    assert client.get("/api/email/verify", params={"token": token}).status_code == 400


def test_expired_token(client: SyncASGITestClient, capture_outbound_email, db_session) -> None:
    _register_alice(client)
    record = db_session.execute(select(EmailVerificationToken)).scalar_one()
    record.expires_at = utcnow() - timedelta(minutes=1)
    db_session.commit()

    response = client.get(
        "/api/email/verify",
        params={"token": _token_from(capture_outbound_email[-1]["link"])},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired verification token."


def test_resend_invalidates_previous_link(client: SyncASGITestClient, capture_outbound_email) -> None:
    _register_alice(client)
    old_token = _token_from(capture_outbound_email[-1]["link"])

    response = client.post("/api/resend-email-verification", json={"email": "alice@example.com"})

    assert response.status_code == 200
    new_token = _token_from(capture_outbound_email[-1]["link"])
    assert new_token != old_token
    assert client.get("/api/email/verify", params={"token": old_token}).status_code == 400
    assert client.get("/api/email/verify", params={"token": new_token}).status_code == 200


def test_resend_for_verified_email(client: SyncASGITestClient, user_factory) -> None:
    user_factory("done@example.com")

    response = client.post("/api/resend-email-verification", json={"email": "done@example.com"})

    assert response.status_code == 400


def test_resend_for_unknown_email(client: SyncASGITestClient) -> None:
    response = client.post("/api/resend-email-verification", json={"email": "ghost@example.com"})

    assert response.status_code == 422
    assert response.json()["data"]["errors"] == {"email": ["The selected email is invalid."]}
