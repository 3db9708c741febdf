"""Symmetric encryption of raw API keys at rest."""

import base64
import binascii
import secrets
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from src.credentials.exceptions import ConfigurationError, CryptoError

SECRET_BYTES = 32


def generate_secret() -> str:
    """Return a fresh secret suitable for ``KEYFORGE_ENCRYPTION_KEY``."""
    return secrets.token_hex(SECRET_BYTES)


class CredentialCipher:
    """Encrypts and decrypts API keys with a process-wide secret.

    Tokens are Fernet envelopes: version, timestamp, random IV,
    AES-CBC payload and an HMAC-SHA256 tag over all of it. A token is
    self-describing, so decryption needs nothing beyond the secret.

    Example:
        cipher = CredentialCipher(generate_secret())
        token = cipher.encrypt("sk-...")
        cipher.decrypt(token)  # "sk-..."
    """

    def __init__(self, secret: Optional[str]):
        self._fernet = Fernet(self._derive_key(secret))

    @staticmethod
    def _derive_key(secret: Optional[str]) -> bytes:
        """Turn a 64-hex-character secret into a Fernet key."""
        if not secret:
            raise ConfigurationError(
                "An encryption secret is required for API key encryption. "
                "Generate one with: openssl rand -hex 32"
            )
        try:
            raw = bytes.fromhex(secret.strip())
        except ValueError:
            raise ConfigurationError(
                "Encryption secret must be a hex string"
            ) from None
        if len(raw) != SECRET_BYTES:
            raise ConfigurationError(
                f"Encryption secret must be exactly {SECRET_BYTES * 2} hex characters "
                f"({SECRET_BYTES} bytes)"
            )
        return base64.urlsafe_b64encode(raw)

    def encrypt(self, raw_key: str) -> str:
        return self._fernet.encrypt(raw_key.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises:
            CryptoError: if the token is malformed, was tampered with, or
                was produced under a different secret.
        """
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError, binascii.Error):
            raise CryptoError() from None
        return plaintext.decode("utf-8")


def mask_api_key(api_key: str) -> str:
    """Mask an API key for display.

    Example: ``"sk-abcdefghijkl"`` -> ``"sk-a*******ijkl"``
    """
    if not api_key or len(api_key) < 8:
        return "*" * (len(api_key) if api_key else 8)
    middle = "*" * max(len(api_key) - 8, 4)
    return f"{api_key[:4]}{middle}{api_key[-4:]}"
