"""Wiring: build the credential services from settings."""

from __future__ import annotations

from typing import Optional

from src.credentials.catalog import ModelCatalog
from src.credentials.cipher import CredentialCipher
from src.credentials.config import CredentialsConfig
from src.credentials.resolver import ProviderConfigResolver
from src.credentials.selector import ModelSelector
from src.credentials.sql_repository import SqlCredentialRepository
from src.credentials.store import CredentialRepository, CredentialStore
from src.credentials.validator import KeyValidator
from src.settings import Settings, get_settings


def create_resolver(
    settings: Optional[Settings] = None,
    repository: Optional[CredentialRepository] = None,
    validator: Optional[KeyValidator] = None,
) -> ProviderConfigResolver:
    """Build a resolver from settings.

    Without an explicit ``repository`` the SQL repository over the
    configured ``database_url`` is used.

    Raises:
        ConfigurationError: if the encryption secret is missing or malformed.
    """
    settings = settings or get_settings()
    config = CredentialsConfig.from_settings(settings)
    cipher = CredentialCipher(settings.encryption_key)

    if repository is None:
        from src.db.engine import get_session_factory
        repository = SqlCredentialRepository(get_session_factory())

    return ProviderConfigResolver(
        store=CredentialStore(repository),
        cipher=cipher,
        validator=validator or KeyValidator(config=config),
        catalog=ModelCatalog(repository),
        config=config,
    )


def create_selector(resolver: Optional[ProviderConfigResolver] = None) -> ModelSelector:
    return ModelSelector(resolver or create_resolver())
