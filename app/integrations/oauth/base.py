"""Abstract base classes for OAuth2 identity providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class OAuth2Config:
    """OAuth2 configuration for a provider."""

    client_id: str
    client_secret: str
    authorization_url: str
    userinfo_url: str
    scopes: List[str]
    redirect_uri: str


@dataclass(frozen=True)
class ExternalIdentity:
    """Identity asserted by a provider for a given access token."""

    external_id: str
    email: str
    display_name: Optional[str] = None


class OAuth2IdentityProvider(ABC):
    """Abstract base class for sign-in providers."""

    def __init__(self, config: OAuth2Config):
        self.config = config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique provider identifier."""
        pass

    @abstractmethod
    def get_authorization_url(self, state: Optional[str] = None) -> str:
        """Generate authorization URL."""
        pass

    @abstractmethod
    async def fetch_identity(self, access_token: str) -> ExternalIdentity:
        """Resolve a provider access token to the account it belongs to."""
        pass


__all__ = ["ExternalIdentity", "OAuth2Config", "OAuth2IdentityProvider"]
