"""OAuth2-specific exceptions."""


class OAuth2Error(Exception):
    """Base OAuth2 error."""

    pass


class OAuth2ConfigurationError(OAuth2Error):
    """Raised when the provider credentials are not configured."""

    pass


class OAuth2ValidationError(OAuth2Error):
    """Raised when a provider rejects the access token or omits identity fields."""

    pass


__all__ = [
    "OAuth2ConfigurationError",
    "OAuth2Error",
    "OAuth2ValidationError",
]
