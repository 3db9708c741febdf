"""Credential store: one credential row per (user, provider)."""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional, Protocol

from src.credentials.config import (
    Credential,
    CredentialPatch,
    ProviderType,
    ValidationStatus,
    utcnow,
)
from src.credentials.exceptions import CredentialStateError

logger = logging.getLogger(__name__)


class CredentialRepository(Protocol):
    """Persistence collaborator consumed by the store and the catalog.

    ``save_credential`` must be atomic per (user, provider) row;
    concurrent writers resolve as last-writer-wins.
    """

    async def load_credential(
        self, user_id: str, provider: ProviderType
    ) -> Optional[Credential]: ...

    async def load_credentials(self, user_id: str) -> list[Credential]: ...

    async def save_credential(self, credential: Credential) -> None: ...

    async def list_models(
        self, user_id: str, provider: ProviderType
    ) -> list[dict[str, Any]]: ...


class InMemoryCredentialRepository:
    """Process-local repository.

    Rows are copied on the way in and out so callers never share
    mutable state with the stored record.
    """

    def __init__(self):
        self._credentials: dict[tuple[str, ProviderType], Credential] = {}
        self._custom_models: dict[tuple[str, ProviderType], list[dict[str, Any]]] = {}

    async def load_credential(
        self, user_id: str, provider: ProviderType
    ) -> Optional[Credential]:
        credential = self._credentials.get((user_id, provider))
        return copy.deepcopy(credential) if credential else None

    async def load_credentials(self, user_id: str) -> list[Credential]:
        return [
            copy.deepcopy(c)
            for (uid, _), c in self._credentials.items()
            if uid == user_id
        ]

    async def save_credential(self, credential: Credential) -> None:
        key = (credential.user_id, credential.provider)
        self._credentials[key] = copy.deepcopy(credential)

    async def list_models(
        self, user_id: str, provider: ProviderType
    ) -> list[dict[str, Any]]:
        return [dict(row) for row in self._custom_models.get((user_id, provider), [])]

    async def add_custom_model(
        self, user_id: str, provider: ProviderType, row: dict[str, Any]
    ) -> None:
        """Register a user-defined model row (normally done by the UI layer)."""
        self._custom_models.setdefault((user_id, provider), []).append(dict(row))

    async def remove_custom_model(
        self, user_id: str, provider: ProviderType, model_id: str
    ) -> bool:
        rows = self._custom_models.get((user_id, provider), [])
        kept = [r for r in rows if r.get("model_id") != model_id]
        self._custom_models[(user_id, provider)] = kept
        return len(kept) != len(rows)


def check_invariant(credential: Credential) -> None:
    """Reject states where the key and the validation status disagree."""
    status = credential.validation_status
    if status == ValidationStatus.VALID and not credential.has_api_key:
        raise CredentialStateError(
            "A valid credential must hold an encrypted API key",
            credential.provider,
        )
    if status == ValidationStatus.UNVALIDATED and credential.has_api_key:
        raise CredentialStateError(
            "An unvalidated credential must not hold an encrypted API key",
            credential.provider,
        )


def apply_patch(credential: Credential, patch: CredentialPatch) -> Credential:
    if patch.clear_api_key:
        credential.encrypted_api_key = None
    elif patch.encrypted_api_key is not None:
        credential.encrypted_api_key = patch.encrypted_api_key
    if patch.validation_status is not None:
        credential.validation_status = patch.validation_status
    if patch.last_validated_at is not None:
        credential.last_validated_at = patch.last_validated_at
    if patch.is_enabled is not None:
        credential.is_enabled = patch.is_enabled
    if patch.default_model is not None:
        credential.default_model = patch.default_model or None
    if patch.settings is not None:
        credential.settings = dict(patch.settings)
    return credential


class CredentialStore:
    """CRUD over credentials, pass-through to the repository.

    Enforces one row per (user, provider) and stamps ``updated_at`` on
    every mutation.

    Example:
        store = CredentialStore(InMemoryCredentialRepository())
        await store.upsert("u1", ProviderType.OPENAI, CredentialPatch(is_enabled=True))
    """

    def __init__(self, repository: CredentialRepository):
        self.repository = repository

    async def get(self, user_id: str, provider: ProviderType) -> Optional[Credential]:
        return await self.repository.load_credential(user_id, provider)

    async def get_all(self, user_id: str) -> list[Credential]:
        credentials = await self.repository.load_credentials(user_id)
        order = list(ProviderType)
        return sorted(credentials, key=lambda c: order.index(c.provider))

    async def upsert(
        self, user_id: str, provider: ProviderType, patch: CredentialPatch
    ) -> Credential:
        """Apply ``patch`` to the stored row, creating it when absent.

        Raises:
            CredentialStateError: if the result would break the
                key/status invariant. Nothing is written in that case.
        """
        existing = await self.repository.load_credential(user_id, provider)
        credential = existing or Credential(user_id=user_id, provider=provider)
        apply_patch(credential, patch)
        credential.updated_at = utcnow()
        check_invariant(credential)
        await self.repository.save_credential(credential)
        if existing is None:
            logger.debug("Created credential row for %s/%s", user_id, provider.value)
        return credential

    async def clear(self, user_id: str, provider: ProviderType) -> Optional[Credential]:
        """Soft delete: drop the key, mark invalid and disabled. Idempotent.

        The row identity is kept. Returns ``None`` when no row exists.
        """
        existing = await self.repository.load_credential(user_id, provider)
        if existing is None:
            return None
        apply_patch(
            existing,
            CredentialPatch(
                clear_api_key=True,
                validation_status=ValidationStatus.INVALID,
                is_enabled=False,
            ),
        )
        existing.updated_at = utcnow()
        await self.repository.save_credential(existing)
        return existing
