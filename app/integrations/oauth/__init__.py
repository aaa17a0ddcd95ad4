"""OAuth2 sign-in providers."""

from .base import ExternalIdentity, OAuth2Config, OAuth2IdentityProvider
from .exceptions import OAuth2ConfigurationError, OAuth2Error, OAuth2ValidationError
from .providers.google import GoogleIdentityProvider, get_google_provider

__all__ = [
    "ExternalIdentity",
    "GoogleIdentityProvider",
    "OAuth2Config",
    "OAuth2ConfigurationError",
    "OAuth2Error",
    "OAuth2IdentityProvider",
    "OAuth2ValidationError",
    "get_google_provider",
]
