"""Tests for encryption utilities."""

import os
import pytest
import base64
from unittest.mock import patch

from cryptography.fernet import Fernet

from app.core.encryption import (
    DecryptionError,
    _get_cipher_suite,
    decrypt_json,
    decrypt_value,
    encrypt_json,
    encrypt_value,
    get_encryption_key,
)


class TestEncryptionKey:
    """Key resolution and validation."""

    def test_get_encryption_key_from_env(self):
        test_key = base64.urlsafe_b64encode(os.urandom(32)).decode()

        with patch.dict(os.environ, {"ENCRYPTION_KEY": test_key}):
            result = get_encryption_key()

        assert result.decode() == test_key
        assert len(base64.urlsafe_b64decode(result)) == 32

    def test_get_encryption_key_from_settings(self):
        test_key = base64.urlsafe_b64encode(os.urandom(32)).decode()

        with patch.dict(os.environ, {}, clear=True):
            with patch("app.core.encryption.settings") as mock_settings:
                mock_settings.encryption_key = test_key
                result = get_encryption_key()

        assert result.decode() == test_key

    def test_get_encryption_key_not_configured(self):
        with patch.dict(os.environ, {}, clear=True):
            with patch("app.core.encryption.settings") as mock_settings:
                mock_settings.encryption_key = ""
                with pytest.raises(RuntimeError) as exc_info:
                    get_encryption_key()

        assert "ENCRYPTION_KEY environment variable or setting must be configured" in str(exc_info.value)

    def test_get_encryption_key_invalid_base64(self):
        with patch.dict(os.environ, {"ENCRYPTION_KEY": "invalid_base64_key"}):
            with pytest.raises(ValueError) as exc_info:
                get_encryption_key()

        assert "ENCRYPTION_KEY must be a 32-byte url-safe base64 string" in str(exc_info.value)

    def test_get_encryption_key_wrong_length(self):
        short_key = base64.urlsafe_b64encode(b"short").decode()

        with patch.dict(os.environ, {"ENCRYPTION_KEY": short_key}):
            with pytest.raises(ValueError) as exc_info:
                get_encryption_key()

        assert "ENCRYPTION_KEY must decode to exactly 32 bytes for Fernet" in str(exc_info.value)


class TestEncryptDecrypt:
    """Symmetric encryption of strings and JSON payloads."""

    def test_encrypt_decrypt_value(self):
        encrypted = encrypt_value("JBSWY3DPEHPK3PXP")

        assert encrypted != "JBSWY3DPEHPK3PXP"
        assert decrypt_value(encrypted) == "JBSWY3DPEHPK3PXP"

    def test_none_passes_through(self):
        assert encrypt_value(None) is None
        assert decrypt_value(None) is None

    def test_ciphertexts_differ_for_same_plaintext(self):
        assert encrypt_value("same") != encrypt_value("same")

    def test_json_payload(self):
        payload = {"email": "alice@example.com", "2fa_required": True, "session_id": "abc"}

        assert decrypt_json(encrypt_json(payload)) == payload

    def test_tampered_ciphertext_raises(self):
        encrypted = encrypt_value("secret")
        tampered = encrypted[:-4] + ("AAAA" if not encrypted.endswith("AAAA") else "BBBB")

        with pytest.raises(DecryptionError):
            decrypt_value(tampered)

    def test_foreign_key_ciphertext_raises(self):
        foreign = Fernet(Fernet.generate_key()).encrypt(b"secret").decode()

        with pytest.raises(DecryptionError):
            decrypt_value(foreign)

    def test_ttl_rejects_old_ciphertext(self):
        token = _get_cipher_suite().encrypt_at_time(b"{}", current_time=1_000).decode()

        with pytest.raises(DecryptionError):
            decrypt_json(token, ttl=900)

    def test_non_json_plaintext_raises(self):
        with pytest.raises(DecryptionError):
            decrypt_json(encrypt_value("not json"))
