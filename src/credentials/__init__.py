"""Provider Credentials Engine.

Stores per-user API keys for LLM providers encrypted at rest, validates
them against the live provider, resolves which providers and models a
user can call, and picks a model for a task.
"""

from src.credentials.catalog import (
    MODEL_CATALOG,
    ModelCatalog,
    estimate_cost,
    filter_by_capability,
    get_model_info,
    list_all_models,
)
from src.credentials.checkers import AuthCheck, BaseAuthChecker, create_checker, default_checkers
from src.credentials.cipher import CredentialCipher, generate_secret, mask_api_key
from src.credentials.config import (
    Credential,
    CredentialPatch,
    CredentialsConfig,
    ModelCapability,
    ModelChoice,
    ModelDescriptor,
    ProviderSnapshot,
    ProviderType,
    RevalidationReport,
    ValidationOutcome,
    ValidationResult,
    ValidationStatus,
    ValidationSummary,
)
from src.credentials.exceptions import (
    ConfigurationError,
    CredentialsError,
    CredentialStateError,
    CredentialStoreError,
    CryptoError,
    NoValidCredential,
    UnknownProviderError,
    ValidationRejected,
    ValidationTransientFailure,
)
from src.credentials.factory import create_resolver, create_selector
from src.credentials.resolver import ProviderConfigResolver
from src.credentials.selector import (
    PROMPT_ENHANCEMENT_CHAIN,
    TITLE_GENERATION_CHAIN,
    ModelSelector,
    PatternChain,
    pick_by_pattern,
)
from src.credentials.sql_repository import SqlCredentialRepository
from src.credentials.store import CredentialStore, InMemoryCredentialRepository
from src.credentials.validator import KeyValidator

__all__ = [
    # Config
    "CredentialsConfig",
    "ProviderType",
    "ValidationStatus",
    "ValidationOutcome",
    "ModelCapability",
    "ModelDescriptor",
    "Credential",
    "CredentialPatch",
    "ProviderSnapshot",
    "ModelChoice",
    "ValidationResult",
    "ValidationSummary",
    "RevalidationReport",
    # Exceptions
    "CredentialsError",
    "ConfigurationError",
    "UnknownProviderError",
    "CryptoError",
    "NoValidCredential",
    "ValidationTransientFailure",
    "ValidationRejected",
    "CredentialStoreError",
    "CredentialStateError",
    # Cipher
    "CredentialCipher",
    "generate_secret",
    "mask_api_key",
    # Store
    "CredentialStore",
    "InMemoryCredentialRepository",
    "SqlCredentialRepository",
    # Validation
    "AuthCheck",
    "BaseAuthChecker",
    "create_checker",
    "default_checkers",
    "KeyValidator",
    # Catalog
    "MODEL_CATALOG",
    "ModelCatalog",
    "get_model_info",
    "list_all_models",
    "filter_by_capability",
    "estimate_cost",
    # Resolution
    "ProviderConfigResolver",
    "ModelSelector",
    "PatternChain",
    "PROMPT_ENHANCEMENT_CHAIN",
    "TITLE_GENERATION_CHAIN",
    "pick_by_pattern",
    "create_resolver",
    "create_selector",
]
