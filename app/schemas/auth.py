"""Authentication-related Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class UserCreate(BaseModel):
    """Schema for creating a user via email/password registration."""

    username: str = Field(min_length=1, max_length=10)
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=6)
    password_confirmation: str
    phone: Optional[str] = Field(default=None, max_length=32)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @model_validator(mode="after")
    def _passwords_match(self) -> "UserCreate":
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class UserLogin(BaseModel):
    """Schema for logging in with email and password."""

    email: EmailStr
    password: str
    device_type: Optional[str] = Field(default=None, max_length=50)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class TwoFactorLogin(BaseModel):
    """Second step of a login for accounts with 2FA enabled."""

    two_factor_code: str = Field(pattern=r"^\d+$")
    device_type: Optional[str] = Field(default=None, max_length=50)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("two_factor_code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> Any:
        # Authenticator codes are often posted as JSON numbers, which drop leading zeros.
        if isinstance(value, int) and not isinstance(value, bool):
            return f"{value:06d}"
        return value


class RecoveryCodeLogin(BaseModel):
    """Second step of a login using a one-time recovery code."""

    code: str = Field(min_length=1)
    device_type: Optional[str] = Field(default=None, max_length=50)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class GoogleLogin(BaseModel):
    """Access token obtained by the client from Google."""

    token: str = Field(min_length=1)
    device_type: Optional[str] = Field(default=None, max_length=50)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class ResendVerificationRequest(BaseModel):
    """Payload for requesting a new verification email."""

    email: EmailStr

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class PasswordUpdateRequest(BaseModel):
    """Payload required to change the current password."""

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)
    new_password_confirmation: str

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_new_password(self) -> "PasswordUpdateRequest":
        if self.new_password != self.new_password_confirmation:
            raise ValueError("The new password confirmation does not match.")
        if self.new_password == self.current_password:
            raise ValueError("The new password and current password must be different.")
        return self


class PasswordResetInstructionRequest(BaseModel):
    """Payload for requesting a password reset email."""

    email: EmailStr

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class PasswordResetRequest(BaseModel):
    """Payload consuming a reset token to set a new password."""

    token: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    password_confirmation: str

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordResetRequest":
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class UserRead(BaseModel):
    """Schema representing the public view of a user."""

    id: uuid.UUID
    username: str
    email: EmailStr
    phone: Optional[str] = None
    bio: Optional[str] = None
    email_verified_at: Optional[datetime] = None
    two_factor_confirmed_at: Optional[datetime] = None
    roles: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("roles", mode="before")
    @classmethod
    def _role_names(cls, value: Any) -> Any:
        return [getattr(role, "name", role) for role in value or []]


class TokenRead(BaseModel):
    """Freshly issued bearer token. ``plain_text_token`` is never shown again."""

    id: int
    expires_at: Optional[datetime] = None
    plain_text_token: str
    token_type: str = "bearer"

    model_config = ConfigDict(frozen=True)


class SessionRead(BaseModel):
    """Device session as listed to its owner; carries no token material."""

    id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: Optional[str] = None
    last_activity: datetime
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


__all__ = [
    "GoogleLogin",
    "PasswordResetInstructionRequest",
    "PasswordResetRequest",
    "PasswordUpdateRequest",
    "RecoveryCodeLogin",
    "ResendVerificationRequest",
    "SessionRead",
    "TokenRead",
    "TwoFactorLogin",
    "UserCreate",
    "UserLogin",
    "UserRead",
]
