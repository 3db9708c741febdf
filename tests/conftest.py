"""Pytest configuration and shared fixtures."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.credentials.catalog import ModelCatalog  # noqa: E402
from src.credentials.checkers import AuthCheck, BaseAuthChecker  # noqa: E402
from src.credentials.cipher import CredentialCipher, generate_secret  # noqa: E402
from src.credentials.config import CredentialsConfig, ProviderType  # noqa: E402
from src.credentials.exceptions import (  # noqa: E402
    ValidationRejected,
    ValidationTransientFailure,
)
from src.credentials.resolver import ProviderConfigResolver  # noqa: E402
from src.credentials.selector import ModelSelector  # noqa: E402
from src.credentials.store import CredentialStore, InMemoryCredentialRepository  # noqa: E402
from src.credentials.validator import KeyValidator  # noqa: E402


class FakeChecker(BaseAuthChecker):
    """Scriptable checker: ``mode`` is valid, invalid, transient or hang."""

    def __init__(self, provider_type: ProviderType, mode: str = "valid"):
        super().__init__()
        self.provider_type = provider_type
        self.mode = mode
        self.calls: list[str] = []

    async def check_auth(self, session, api_key, timeout):
        self.calls.append(api_key)
        if self.mode == "invalid":
            raise ValidationRejected(self.provider_type, "Invalid API key")
        if self.mode == "transient":
            raise ValidationTransientFailure(
                self.provider_type, "Provider unavailable (HTTP 503); try again later"
            )
        if self.mode == "hang":
            await asyncio.sleep(30)
        return AuthCheck(details={"models_count": 3})


@pytest.fixture
def secret():
    return generate_secret()


@pytest.fixture
def cipher(secret):
    return CredentialCipher(secret)


@pytest.fixture
def repository():
    return InMemoryCredentialRepository()


@pytest.fixture
def store(repository):
    return CredentialStore(repository)


@pytest.fixture
def credentials_config():
    return CredentialsConfig(validation_timeout_seconds=0.2)


@pytest.fixture
def fake_checkers():
    return {p: FakeChecker(p) for p in ProviderType}


@pytest.fixture
def validator(fake_checkers, credentials_config):
    return KeyValidator(
        checkers=fake_checkers, config=credentials_config, session=MagicMock()
    )


@pytest.fixture
def catalog(repository):
    return ModelCatalog(repository)


@pytest.fixture
def resolver(store, cipher, validator, catalog, credentials_config):
    return ProviderConfigResolver(store, cipher, validator, catalog, credentials_config)


@pytest.fixture
def selector(resolver):
    return ModelSelector(resolver)
