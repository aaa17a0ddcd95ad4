"""Pydantic schemas for two-factor authentication management."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EnableTwoFactorRequest(BaseModel):
    """Password re-confirmation required before starting 2FA setup."""

    password: str = Field(min_length=1)

    model_config = ConfigDict(frozen=True)


class ActivateTwoFactorRequest(BaseModel):
    """Code from the authenticator app confirming the new secret."""

    code: str = Field(pattern=r"^\d+$")

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return f"{value:06d}"
        return value


class TwoFactorSetupRead(BaseModel):
    """Shared secret and provisioning URI for the authenticator app."""

    secret: str
    qr_url: str

    model_config = ConfigDict(frozen=True)


__all__ = [
    "ActivateTwoFactorRequest",
    "EnableTwoFactorRequest",
    "TwoFactorSetupRead",
]
