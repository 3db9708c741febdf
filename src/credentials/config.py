"""Configuration types for provider credentials and model resolution."""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


class ProviderType(enum.Enum):
    """Supported model providers.

    Declaration order is the catalog order used by every fallback rule.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    OPENROUTER = "openrouter"
    DEEPSEEK = "deepseek"
    TOGETHERAI = "togetherai"
    GROQ = "groq"
    MISTRAL = "mistral"

    @classmethod
    def parse(cls, value: "ProviderType | str") -> "ProviderType":
        """Narrow an identifier into the closed provider set.

        Raises:
            UnknownProviderError: if ``value`` names no supported provider.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            from src.credentials.exceptions import UnknownProviderError
            raise UnknownProviderError(str(value)) from None


class ValidationStatus(enum.Enum):
    """Persisted validation state of a stored credential."""

    UNVALIDATED = "unvalidated"
    VALID = "valid"
    INVALID = "invalid"

    @classmethod
    def from_stored(cls, value: Optional[str]) -> "ValidationStatus":
        """Read a stored status; legacy ``pending`` rows count as unvalidated."""
        if not value or value == "pending":
            return cls.UNVALIDATED
        return cls(value)


class ValidationOutcome(enum.Enum):
    """Classification of a single key validation attempt."""

    VALID = "valid"
    INVALID = "invalid"
    TRANSIENT_FAILURE = "transient_failure"


class ModelCapability(enum.Enum):
    """Capability flags carried by every model descriptor."""

    VISION = "vision"
    TOOLS = "tools"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"


class ErrorCode(enum.Enum):
    """Error codes attached to every credentials exception."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_PROVIDER = "UNKNOWN_PROVIDER"
    CRYPTO_ERROR = "CRYPTO_ERROR"
    NO_VALID_CREDENTIAL = "NO_VALID_CREDENTIAL"
    VALIDATION_TRANSIENT_FAILURE = "VALIDATION_TRANSIENT_FAILURE"
    VALIDATION_REJECTED = "VALIDATION_REJECTED"
    STORE_ERROR = "STORE_ERROR"
    INVALID_CREDENTIAL_STATE = "INVALID_CREDENTIAL_STATE"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ModelDescriptor:
    """Metadata for a model offered by a provider (catalog or custom)."""

    id: str
    provider: ProviderType
    display_name: str
    description: str = ""
    max_tokens: int = 128_000
    supports_vision: bool = False
    supports_tools: bool = False
    supports_audio: bool = False
    supports_video: bool = False
    supports_document: bool = False
    cost_per_1k_input: float = 0.0   # USD per 1K input tokens
    cost_per_1k_output: float = 0.0  # USD per 1K output tokens
    is_custom: bool = False

    def supports(self, capability: ModelCapability) -> bool:
        return bool(getattr(self, f"supports_{capability.value}"))


@dataclass
class Credential:
    """One stored credential per (user, provider)."""

    user_id: str
    provider: ProviderType
    encrypted_api_key: Optional[str] = None
    validation_status: ValidationStatus = ValidationStatus.UNVALIDATED
    last_validated_at: Optional[datetime] = None
    is_enabled: bool = False
    default_model: Optional[str] = None
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def has_api_key(self) -> bool:
        return bool(self.encrypted_api_key)

    def __repr__(self) -> str:
        # Ciphertext stays out of reprs and therefore out of logs.
        return (
            f"Credential(user_id={self.user_id!r}, provider={self.provider.value!r}, "
            f"validation_status={self.validation_status.value!r}, "
            f"has_api_key={self.has_api_key}, is_enabled={self.is_enabled})"
        )


@dataclass
class CredentialPatch:
    """Partial update for a credential.

    ``None`` leaves a field unchanged. ``clear_api_key`` removes the stored
    ciphertext, since ``None`` cannot express that.
    """

    encrypted_api_key: Optional[str] = None
    clear_api_key: bool = False
    validation_status: Optional[ValidationStatus] = None
    last_validated_at: Optional[datetime] = None
    is_enabled: Optional[bool] = None
    default_model: Optional[str] = None
    settings: Optional[dict[str, Any]] = None


@dataclass
class ProviderSnapshot:
    """Per-request view of one provider for one user. Never persisted."""

    provider: ProviderType
    is_enabled: bool = False
    has_api_key: bool = False
    api_key_valid: bool = False
    default_model: Optional[str] = None
    available_models: list[ModelDescriptor] = field(default_factory=list)
    last_validated_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return self.is_enabled and self.api_key_valid


@dataclass
class ModelChoice:
    """A resolved (provider, model) pair."""

    provider: ProviderType
    model_id: str


@dataclass
class ValidationResult:
    """Outcome of validating one raw key against its provider."""

    provider: ProviderType
    outcome: ValidationOutcome
    error: Optional[str] = None
    response_time_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.outcome == ValidationOutcome.VALID

    @property
    def is_transient(self) -> bool:
        return self.outcome == ValidationOutcome.TRANSIENT_FAILURE

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "provider": self.provider.value,
            "isValid": self.is_valid,
            "outcome": self.outcome.value,
        }
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass
class ValidationSummary:
    """Aggregate over a batch of validation results."""

    total: int = 0
    valid: int = 0
    invalid: int = 0
    transient: int = 0
    average_response_time_ms: float = 0.0


@dataclass
class RevalidationReport:
    """What a re-validation pass did to one stored credential."""

    provider: ProviderType
    action: str  # skipped | updated | refreshed | unchanged | error
    old_status: ValidationStatus
    new_status: ValidationStatus
    reason: str = ""


@dataclass
class CredentialsConfig:
    """Tunables for validation and resolution."""

    validation_timeout_seconds: float = 10.0
    max_concurrent_validations: int = 4
    max_concurrent_resolutions: int = 4
    user_agent: str = "Keyforge/1.0"

    @classmethod
    def from_settings(cls, settings) -> "CredentialsConfig":
        return cls(
            validation_timeout_seconds=settings.validation_timeout_seconds,
            max_concurrent_validations=settings.max_concurrent_validations,
            max_concurrent_resolutions=settings.max_concurrent_resolutions,
            user_agent=settings.user_agent,
        )


DEFAULT_CREDENTIALS_CONFIG = CredentialsConfig()
