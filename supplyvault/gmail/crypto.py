"""Field-level encryption for OAuth tokens at rest.

Uses Fernet (AES-128-CBC + HMAC-SHA256) with a key derived from
``SUPPLYVAULT_ENCRYPTION_KEY``.
"""

from __future__ import annotations

import base64

import structlog
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from supplyvault.config import Settings

logger = structlog.get_logger()

_SENTINEL_PREFIX = "enc:"  # Prefix to identify encrypted values
_KDF_SALT = b"supplyvault-gmail-tokens-v1"


class EncryptionNotConfigured(RuntimeError):
    pass


def _derive_fernet(secret: str) -> Fernet:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_KDF_SALT,
        iterations=100_000,
    )
    derived = kdf.derive(secret.encode("utf-8"))
    return Fernet(base64.urlsafe_b64encode(derived))


class TokenCipher:
    """Encrypt and decrypt token strings."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise EncryptionNotConfigured("Encryption key not configured")
        self._fernet = _derive_fernet(secret)

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenCipher:
        if settings.encryption_key is None:
            raise EncryptionNotConfigured("Encryption key not configured")
        return cls(settings.encryption_key.get_secret_value())

    def encrypt(self, plaintext: str | None) -> str | None:
        """Encrypt a string field. Returns None if input is None."""
        if plaintext is None:
            return None
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return _SENTINEL_PREFIX + token.decode("utf-8")

    def decrypt(self, ciphertext: str | None) -> str | None:
        """Decrypt a string field. Returns None if input is None.

        Values without the sentinel prefix are returned unchanged.
        """
        if ciphertext is None:
            return None
        if not ciphertext.startswith(_SENTINEL_PREFIX):
            return ciphertext
        try:
            return self._fernet.decrypt(
                ciphertext[len(_SENTINEL_PREFIX):].encode("utf-8")
            ).decode("utf-8")
        except InvalidToken:
            logger.error("token_decryption_failed")
            raise
