"""Google sign-in provider."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

import httpx

from app.core.config import settings
from app.integrations.oauth.base import ExternalIdentity, OAuth2Config, OAuth2IdentityProvider
from app.integrations.oauth.exceptions import OAuth2ConfigurationError, OAuth2ValidationError

GOOGLE_AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_SCOPES = ["openid", "email", "profile"]


class GoogleIdentityProvider(OAuth2IdentityProvider):
    """Resolves Google access tokens obtained by the client to identities."""

    def __init__(self, config: OAuth2Config, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "google"

    def get_authorization_url(self, state: Optional[str] = None) -> str:
        """Generate the Google consent screen URL."""
        if not self.config.client_id:
            raise OAuth2ConfigurationError("Google sign-in is not configured.")

        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "scope": " ".join(self.config.scopes),
            "response_type": "token",
            "prompt": "select_account",
        }
        if state:
            params["state"] = state
        return f"{self.config.authorization_url}?{urlencode(params)}"

    async def fetch_identity(self, access_token: str) -> ExternalIdentity:
        """Look up the Google account behind ``access_token``."""
        async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
            try:
                response = await client.get(
                    self.config.userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPError as e:
                raise OAuth2ValidationError(f"Failed to get user info: {str(e)}")

        external_id = data.get("sub")
        email = data.get("email")
        if not external_id or not email:
            raise OAuth2ValidationError("Google did not return an account id and email.")
        if data.get("email_verified") is False:
            raise OAuth2ValidationError("Google account email is not verified.")

        return ExternalIdentity(
            external_id=str(external_id),
            email=email,
            display_name=data.get("name"),
        )


def get_google_provider() -> GoogleIdentityProvider:
    """Build the provider from application settings."""

    return GoogleIdentityProvider(
        OAuth2Config(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            authorization_url=GOOGLE_AUTHORIZATION_URL,
            userinfo_url=GOOGLE_USERINFO_URL,
            scopes=list(GOOGLE_SCOPES),
            redirect_uri=settings.google_redirect_uri,
        )
    )


__all__ = ["GoogleIdentityProvider", "get_google_provider"]
