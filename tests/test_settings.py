"""Tests for settings, config wiring and the service factory."""

import pytest

from src.credentials.config import (
    CredentialsConfig,
    ProviderType,
    ValidationStatus,
)
from src.credentials.exceptions import ConfigurationError, UnknownProviderError
from src.credentials.factory import create_resolver, create_selector
from src.credentials.resolver import ProviderConfigResolver
from src.credentials.selector import ModelSelector
from src.credentials.store import InMemoryCredentialRepository
from src.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("KEYFORGE_ENCRYPTION_KEY", "KEYFORGE_DATABASE_URL"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings()
        assert settings.encryption_key == ""
        assert settings.database_url == "sqlite:///./keyforge.db"
        assert settings.validation_timeout_seconds == 10.0
        assert settings.max_concurrent_validations == 4

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("KEYFORGE_VALIDATION_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("KEYFORGE_MAX_CONCURRENT_RESOLUTIONS", "8")
        settings = Settings()
        assert settings.validation_timeout_seconds == 2.5
        assert settings.max_concurrent_resolutions == 8

    def test_credentials_config_from_settings(self, monkeypatch):
        monkeypatch.setenv("KEYFORGE_USER_AGENT", "Test/9")
        config = CredentialsConfig.from_settings(Settings())
        assert config.user_agent == "Test/9"
        assert config.validation_timeout_seconds == 10.0


class TestEnums:
    def test_provider_declaration_order(self):
        assert [p.value for p in ProviderType] == [
            "openai", "anthropic", "google", "openrouter",
            "deepseek", "togetherai", "groq", "mistral",
        ]

    def test_parse_normalizes(self):
        assert ProviderType.parse(" Anthropic ") == ProviderType.ANTHROPIC
        assert ProviderType.parse(ProviderType.GROQ) == ProviderType.GROQ

    def test_parse_unknown(self):
        with pytest.raises(UnknownProviderError) as exc_info:
            ProviderType.parse("cohere")
        assert exc_info.value.to_dict()["error"]["details"] == {"provider": "cohere"}

    def test_legacy_pending_status(self):
        assert ValidationStatus.from_stored("pending") == ValidationStatus.UNVALIDATED
        assert ValidationStatus.from_stored(None) == ValidationStatus.UNVALIDATED
        assert ValidationStatus.from_stored("valid") == ValidationStatus.VALID


class TestFactory:
    def test_create_resolver_with_repository(self, secret):
        settings = Settings(encryption_key=secret)
        resolver = create_resolver(settings, repository=InMemoryCredentialRepository())
        assert isinstance(resolver, ProviderConfigResolver)
        assert resolver.config.validation_timeout_seconds == settings.validation_timeout_seconds
        assert set(resolver.validator.checkers) == set(ProviderType)

    def test_create_resolver_requires_secret(self):
        with pytest.raises(ConfigurationError):
            create_resolver(
                Settings(encryption_key=""), repository=InMemoryCredentialRepository()
            )

    def test_create_selector(self, secret):
        resolver = create_resolver(
            Settings(encryption_key=secret), repository=InMemoryCredentialRepository()
        )
        selector = create_selector(resolver)
        assert isinstance(selector, ModelSelector)
        assert selector.resolver is resolver
