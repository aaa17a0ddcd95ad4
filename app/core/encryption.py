"""Encryption utilities for securing secrets at rest and in cookies."""

from __future__ import annotations

import base64
import json
import os
from functools import lru_cache
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from app.core.config import settings


class DecryptionError(Exception):
    """Raised when a ciphertext cannot be decrypted or has expired."""


def get_encryption_key() -> bytes:
    """Resolve the configured Fernet key, validating it is usable."""

    key: str | bytes | None = os.environ.get("ENCRYPTION_KEY") or settings.encryption_key
    if not key:
        raise RuntimeError("ENCRYPTION_KEY environment variable or setting must be configured")

    key_bytes = key.encode("utf-8") if isinstance(key, str) else key

    try:
        decoded = base64.urlsafe_b64decode(key_bytes)
    except (ValueError, TypeError) as exc:
        raise ValueError("ENCRYPTION_KEY must be a 32-byte url-safe base64 string") from exc

    if len(decoded) != 32:
        raise ValueError("ENCRYPTION_KEY must decode to exactly 32 bytes for Fernet")

    return key_bytes


@lru_cache(maxsize=1)
def _get_cipher_suite() -> Fernet:
    return Fernet(get_encryption_key())


def encrypt_value(value: str | None) -> str | None:
    """Encrypt a string using Fernet encryption."""
    if value is None:
        return None
    return _get_cipher_suite().encrypt(value.encode()).decode()


def decrypt_value(encrypted_value: str | None, *, ttl: int | None = None) -> str | None:
    """Decrypt a Fernet ciphertext.

    When ``ttl`` is given, ciphertexts older than ``ttl`` seconds are rejected.
    """
    if encrypted_value is None:
        return None
    try:
        return _get_cipher_suite().decrypt(encrypted_value.encode(), ttl=ttl).decode()
    except (InvalidToken, ValueError) as exc:
        raise DecryptionError("Unable to decrypt value") from exc


def encrypt_json(payload: Any) -> str:
    """Serialize ``payload`` to JSON and encrypt it."""

    return encrypt_value(json.dumps(payload, default=str))


def decrypt_json(encrypted_value: str, *, ttl: int | None = None) -> Any:
    """Decrypt a ciphertext produced by :func:`encrypt_json`."""

    plaintext = decrypt_value(encrypted_value, ttl=ttl)
    try:
        return json.loads(plaintext)
    except ValueError as exc:
        raise DecryptionError("Decrypted value is not valid JSON") from exc


__all__ = [
    "DecryptionError",
    "decrypt_json",
    "decrypt_value",
    "encrypt_json",
    "encrypt_value",
    "get_encryption_key",
]
