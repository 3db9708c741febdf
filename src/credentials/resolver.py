"""Provider Config Resolver.

Combines the credential store, cipher, validator and model catalog into
the per-user view the rest of the application consumes: which providers
are usable, which models they offer, and the decrypted key for a call.
"""

import asyncio
import logging
from typing import Optional

from src.credentials.catalog import ModelCatalog
from src.credentials.cipher import CredentialCipher
from src.credentials.config import (
    DEFAULT_CREDENTIALS_CONFIG,
    Credential,
    CredentialPatch,
    CredentialsConfig,
    ProviderSnapshot,
    ProviderType,
    RevalidationReport,
    ValidationOutcome,
    ValidationResult,
    ValidationStatus,
    utcnow,
)
from src.credentials.exceptions import CredentialStoreError, CryptoError, NoValidCredential
from src.credentials.store import CredentialStore
from src.credentials.validator import KeyValidator
from src.logging_config import LogContext

logger = logging.getLogger(__name__)


class ProviderConfigResolver:
    """Resolves stored credentials into provider snapshots.

    Holds no mutable state of its own; every call reads through the store.
    Validity is whatever was last persisted; ``resolve`` never re-validates.

    Example:
        resolver = ProviderConfigResolver(store, cipher, validator, catalog)
        result = await resolver.save_api_key("user_1", "openai", "sk-...")
        if result.is_valid:
            key = await resolver.get_api_key("user_1", "openai")
    """

    def __init__(
        self,
        store: CredentialStore,
        cipher: CredentialCipher,
        validator: KeyValidator,
        catalog: ModelCatalog,
        config: Optional[CredentialsConfig] = None,
    ):
        self.store = store
        self.cipher = cipher
        self.validator = validator
        self.catalog = catalog
        self.config = config or DEFAULT_CREDENTIALS_CONFIG

    # ── Resolution ────────────────────────────────────────────────────

    async def resolve(self, user_id: str, provider: ProviderType) -> ProviderSnapshot:
        """Snapshot of one provider for one user.

        A store failure degrades this provider to an unusable snapshot
        with ``error`` set instead of failing the caller.
        """
        provider = ProviderType.parse(provider)
        try:
            credential = await self.store.get(user_id, provider)
            if credential is None:
                return ProviderSnapshot(provider=provider)

            snapshot = ProviderSnapshot(
                provider=provider,
                is_enabled=credential.is_enabled,
                default_model=credential.default_model,
                last_validated_at=credential.last_validated_at,
            )
            status = credential.validation_status
            if status == ValidationStatus.VALID:
                snapshot.has_api_key = credential.has_api_key
                snapshot.api_key_valid = credential.has_api_key
                snapshot.available_models = await self.catalog.all_for(user_id, provider)
            elif status == ValidationStatus.INVALID:
                snapshot.has_api_key = credential.has_api_key
            return snapshot
        except CredentialStoreError as e:
            logger.error(
                "Failed to resolve provider %s for user %s: %s",
                provider.value, user_id, e.message,
                extra={
                    "error_kind": type(e).__name__,
                    "provider": provider.value,
                    "user_id": user_id,
                },
            )
            return ProviderSnapshot(provider=provider, error=e.message)

    async def resolve_all(self, user_id: str) -> list[ProviderSnapshot]:
        """Snapshots for every supported provider, in declaration order."""
        semaphore = asyncio.Semaphore(self.config.max_concurrent_resolutions)

        async def _bounded(provider: ProviderType) -> ProviderSnapshot:
            async with semaphore:
                return await self.resolve(user_id, provider)

        return list(await asyncio.gather(*(_bounded(p) for p in ProviderType)))

    async def is_provider_available(self, user_id: str, provider: ProviderType) -> bool:
        snapshot = await self.resolve(user_id, provider)
        return snapshot.is_usable

    # ── Keys ──────────────────────────────────────────────────────────

    async def get_api_key(self, user_id: str, provider: ProviderType) -> str:
        """Decrypted key for a provider call.

        Raises:
            NoValidCredential: no row, no key, status other than valid, or
                the stored ciphertext failed to decrypt.
        """
        provider = ProviderType.parse(provider)
        credential = await self.store.get(user_id, provider)
        if credential is None or not credential.has_api_key:
            raise NoValidCredential(user_id, provider, "no API key configured")
        if credential.validation_status != ValidationStatus.VALID:
            raise NoValidCredential(
                user_id, provider, f"API key is {credential.validation_status.value}"
            )
        return self._decrypt(credential)

    async def save_api_key(
        self, user_id: str, provider: ProviderType, raw_key: str
    ) -> ValidationResult:
        """Validate then persist. A failed validation writes nothing."""
        provider = ProviderType.parse(provider)
        with LogContext(user_id=user_id, provider=provider.value):
            result = await self.validator.validate(provider, raw_key)
            if not result.is_valid:
                logger.info(
                    "Not saving key for %s: %s",
                    provider.value, result.outcome.value,
                    extra={"outcome": result.outcome.value},
                )
                return result

            await self.store.upsert(
                user_id,
                provider,
                CredentialPatch(
                    encrypted_api_key=self.cipher.encrypt(raw_key.strip()),
                    validation_status=ValidationStatus.VALID,
                    last_validated_at=utcnow(),
                    is_enabled=True,
                ),
            )
            logger.info("Saved validated key for %s", provider.value)
            return result

    async def delete_api_key(self, user_id: str, provider: ProviderType) -> None:
        """Soft delete; safe to call when nothing is stored."""
        provider = ProviderType.parse(provider)
        cleared = await self.store.clear(user_id, provider)
        if cleared is not None:
            logger.info("Cleared key for %s", provider.value, extra={"user_id": user_id})

    async def validate_api_key(self, provider: ProviderType, raw_key: str) -> ValidationResult:
        """Validate only; nothing is persisted."""
        return await self.validator.validate(ProviderType.parse(provider), raw_key)

    async def revalidate_api_key(
        self, user_id: str, provider: ProviderType
    ) -> ValidationResult:
        """Re-check the stored key and persist the definitive outcome.

        Valid refreshes ``last_validated_at``; rejected marks the row
        invalid and keeps the key; a transient failure changes nothing.

        Raises:
            NoValidCredential: nothing stored, or the key fails to decrypt.
        """
        provider = ProviderType.parse(provider)
        credential = await self.store.get(user_id, provider)
        if credential is None or not credential.has_api_key:
            raise NoValidCredential(user_id, provider, "no API key configured")
        raw_key = self._decrypt(credential)

        with LogContext(user_id=user_id, provider=provider.value):
            result = await self.validator.validate(provider, raw_key)
            if result.outcome == ValidationOutcome.VALID:
                await self.store.upsert(
                    user_id, provider,
                    CredentialPatch(
                        validation_status=ValidationStatus.VALID,
                        last_validated_at=utcnow(),
                    ),
                )
            elif result.outcome == ValidationOutcome.INVALID:
                await self.store.upsert(
                    user_id, provider,
                    CredentialPatch(
                        validation_status=ValidationStatus.INVALID,
                        last_validated_at=utcnow(),
                    ),
                )
                logger.warning("Stored key for %s is no longer accepted", provider.value)
        return result

    async def revalidate_all(self, user_id: str) -> list[RevalidationReport]:
        """Re-check every stored key for a user, one report per row."""
        credentials = await self.store.get_all(user_id)
        semaphore = asyncio.Semaphore(self.config.max_concurrent_validations)

        async def _bounded(credential: Credential) -> RevalidationReport:
            async with semaphore:
                return await self._revalidate_one(credential)

        return list(await asyncio.gather(*(_bounded(c) for c in credentials)))

    # ── Preferences ───────────────────────────────────────────────────

    async def update_preferences(
        self,
        user_id: str,
        provider: ProviderType,
        is_enabled: Optional[bool] = None,
        default_model: Optional[str] = None,
    ) -> Credential:
        """Change enablement or default model. Key state is untouched.

        An empty ``default_model`` clears the preference.
        """
        provider = ProviderType.parse(provider)
        return await self.store.upsert(
            user_id,
            provider,
            CredentialPatch(is_enabled=is_enabled, default_model=default_model),
        )

    # ── Internals ─────────────────────────────────────────────────────

    def _decrypt(self, credential: Credential) -> str:
        try:
            return self.cipher.decrypt(credential.encrypted_api_key)
        except CryptoError:
            logger.error(
                "Stored key for %s failed to decrypt",
                credential.provider.value,
                extra={
                    "error_kind": "CryptoError",
                    "provider": credential.provider.value,
                    "user_id": credential.user_id,
                },
            )
            raise NoValidCredential(
                credential.user_id, credential.provider,
                "stored API key could not be decrypted",
            ) from None

    async def _revalidate_one(self, credential: Credential) -> RevalidationReport:
        user_id, provider = credential.user_id, credential.provider
        old_status = credential.validation_status

        if not credential.has_api_key:
            return RevalidationReport(
                provider, "skipped", old_status, old_status, "No API key stored"
            )

        try:
            raw_key = self.cipher.decrypt(credential.encrypted_api_key)
        except CryptoError:
            await self.store.upsert(
                user_id, provider,
                CredentialPatch(
                    validation_status=ValidationStatus.INVALID,
                    last_validated_at=utcnow(),
                ),
            )
            return RevalidationReport(
                provider, "error", old_status, ValidationStatus.INVALID,
                "Stored API key could not be decrypted",
            )

        result = await self.validator.validate(provider, raw_key)
        if result.is_transient:
            return RevalidationReport(
                provider, "unchanged", old_status, old_status, result.error or ""
            )

        new_status = ValidationStatus.VALID if result.is_valid else ValidationStatus.INVALID
        await self.store.upsert(
            user_id, provider,
            CredentialPatch(validation_status=new_status, last_validated_at=utcnow()),
        )
        if new_status != old_status:
            reason = "API key is valid" if result.is_valid else (result.error or "API key rejected")
            return RevalidationReport(provider, "updated", old_status, new_status, reason)
        return RevalidationReport(
            provider, "refreshed", old_status, new_status, "Validation timestamp refreshed"
        )
