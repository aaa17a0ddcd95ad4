"""Password reset flow through the API."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from tests.conftest import SyncASGITestClient, login


def _reset_params(link: str) -> dict[str, str]:
    query = parse_qs(urlsplit(link).query)
    return {"token": query["token"][0], "email": query["email"][0]}


def test_reset_password_flow(client: SyncASGITestClient, user_factory, capture_outbound_email) -> None:
    user_factory("reset@example.com")

    response = client.post("/api/send-reset-password-instruction", json={"email": "reset@example.com"})

    assert response.status_code == 200
    sent = capture_outbound_email[-1]
    assert sent["kind"] == "password_reset"
    params = _reset_params(sent["link"])
    assert params["email"] == "reset@example.com"

    reset = client.patch(
        "/api/reset-password",
        json={**params, "password": "brandnew", "password_confirmation": "brandnew"},
    )

    assert reset.status_code == 200
    assert login(client, "reset@example.com", "brandnew").status_code == 200
    assert login(client, "reset@example.com").status_code == 401


def test_reset_token_is_single_use(client: SyncASGITestClient, user_factory, capture_outbound_email) -> None:
    user_factory("reset@example.com")
    client.post("/api/send-reset-password-instruction", json={"email": "reset@example.com"})
    body = {
        **_reset_params(capture_outbound_email[-1]["link"]),
        "password": "brandnew",
        "password_confirmation": "brandnew",
    }

    assert client.patch("/api/reset-password", json=body).status_code == 200
    assert client.patch("/api/reset-password", json=body).status_code == 400


def test_reset_with_bad_token(client: SyncASGITestClient, user_factory) -> None:
    user_factory("reset@example.com")

    response = client.patch(
        "/api/reset-password",
        json={
            "token": "nope",
            "email": "reset@example.com",
            "password": "brandnew",
            "password_confirmation": "brandnew",
        },
    )

    assert response.status_code == 400


def test_instructions_for_unknown_email(client: SyncASGITestClient, capture_outbound_email) -> None:
    response = client.post("/api/send-reset-password-instruction", json={"email": "ghost@example.com"})

    assert response.status_code == 422
    assert capture_outbound_email == []
