"""Tests for the Google sign-in provider."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from app.integrations.oauth import (
    OAuth2ConfigurationError,
    OAuth2Config,
    OAuth2ValidationError,
)
from app.integrations.oauth.providers.google import (
    GOOGLE_USERINFO_URL,
    GoogleIdentityProvider,
)


def _config(client_id: str = "client-123") -> OAuth2Config:
    return OAuth2Config(
        client_id=client_id,
        client_secret="shh",
        authorization_url="https://accounts.google.com/o/oauth2/v2/auth",
        userinfo_url=GOOGLE_USERINFO_URL,
        scopes=["openid", "email", "profile"],
        redirect_uri="http://localhost:3000/auth/google/callback",
    )


def _provider(payload: dict | None = None, status_code: int = 200) -> tuple[GoogleIdentityProvider, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json=payload or {})

    return GoogleIdentityProvider(_config(), transport=httpx.MockTransport(handler)), seen


def test_authorization_url() -> None:
    provider = GoogleIdentityProvider(_config())

    url = provider.get_authorization_url(state="xyz")

    query = parse_qs(urlsplit(url).query)
    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert query["client_id"] == ["client-123"]
    assert query["scope"] == ["openid email profile"]
    assert query["state"] == ["xyz"]
    assert provider.provider_name == "google"


def test_authorization_url_requires_client_id() -> None:
    with pytest.raises(OAuth2ConfigurationError):
        GoogleIdentityProvider(_config(client_id="")).get_authorization_url()


@pytest.mark.asyncio
async def test_fetch_identity() -> None:
    provider, seen = _provider(
        {"sub": "1234", "email": "bob@gmail.com", "email_verified": True, "name": "Bob"}
    )

    identity = await provider.fetch_identity("google-token")

    assert identity.external_id == "1234"
    assert identity.email == "bob@gmail.com"
    assert identity.display_name == "Bob"
    assert seen[0].headers["Authorization"] == "Bearer google-token"


@pytest.mark.asyncio
async def test_fetch_identity_rejected_token() -> None:
    provider, _ = _provider({"error": "invalid_token"}, status_code=401)

    with pytest.raises(OAuth2ValidationError):
        await provider.fetch_identity("expired")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"email": "bob@gmail.com"},
        {"sub": "1234"},
        {"sub": "1234", "email": "bob@gmail.com", "email_verified": False},
    ],
)
async def test_fetch_identity_incomplete_profile(payload: dict) -> None:
    provider, _ = _provider(payload)

    with pytest.raises(OAuth2ValidationError):
        await provider.fetch_identity("token")
