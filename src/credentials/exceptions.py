"""Credential Exception Hierarchy.

Typed exceptions for the credential engine. Each carries an error code
and a details mapping that is safe to hand to a response layer: no raw
or encrypted key material ever appears in messages or details.
"""

from typing import Any, Dict, Optional

from src.credentials.config import ErrorCode, ProviderType


class CredentialsError(Exception):
    """Base exception for all credential engine errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(CredentialsError):
    """Raised when the encryption secret is missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR)


class UnknownProviderError(CredentialsError):
    """Raised when a provider identifier is outside the supported set."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(
            f"Unsupported provider: {provider}",
            ErrorCode.UNKNOWN_PROVIDER,
            {"provider": provider},
        )


class CryptoError(CredentialsError):
    """Raised when a ciphertext fails authentication on decrypt.

    Fatal for the read that hit it; the same ciphertext must not be retried.
    """

    def __init__(self, message: str = "Stored API key failed authentication"):
        super().__init__(message, ErrorCode.CRYPTO_ERROR)


class NoValidCredential(CredentialsError):
    """Raised when no usable key exists for a (user, provider) pair."""

    def __init__(self, user_id: str, provider: ProviderType, reason: str):
        self.user_id = user_id
        self.provider = provider
        self.reason = reason
        super().__init__(
            f"No valid API key for provider {provider.value}: {reason}",
            ErrorCode.NO_VALID_CREDENTIAL,
            {"provider": provider.value, "user_id": user_id, "reason": reason},
        )


class ValidationTransientFailure(CredentialsError):
    """Raised when a provider check could not complete (network, timeout, 5xx).

    Callers may retry later. Never persisted as a credential status.
    """

    def __init__(self, provider: ProviderType, message: str):
        self.provider = provider
        super().__init__(
            message,
            ErrorCode.VALIDATION_TRANSIENT_FAILURE,
            {"provider": provider.value},
        )


class ValidationRejected(CredentialsError):
    """Raised when a provider confirms the key is not authorized."""

    def __init__(self, provider: ProviderType, message: str = "Invalid API key"):
        self.provider = provider
        super().__init__(
            message,
            ErrorCode.VALIDATION_REJECTED,
            {"provider": provider.value},
        )


class CredentialStoreError(CredentialsError):
    """Raised when the persistence collaborator fails."""

    def __init__(self, message: str, provider: Optional[ProviderType] = None):
        self.provider = provider
        details = {"provider": provider.value} if provider else {}
        super().__init__(message, ErrorCode.STORE_ERROR, details)


class CredentialStateError(CredentialsError):
    """Raised when a write would break the credential state invariant."""

    def __init__(self, message: str, provider: ProviderType):
        self.provider = provider
        super().__init__(
            message,
            ErrorCode.INVALID_CREDENTIAL_STATE,
            {"provider": provider.value},
        )
