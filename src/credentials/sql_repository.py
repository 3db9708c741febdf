"""SQLAlchemy-backed credential repository.

ORM sessions are synchronous; each call runs in a worker thread via
``asyncio.to_thread`` so the event loop never blocks on the database.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.credentials.config import Credential, ProviderType, ValidationStatus
from src.credentials.exceptions import CredentialStoreError
from src.db.models import UserCustomModel, UserProvider

logger = logging.getLogger(__name__)

_CUSTOM_MODEL_FIELDS = (
    "model_id",
    "display_name",
    "description",
    "max_tokens",
    "supports_vision",
    "supports_tools",
    "supports_audio",
    "supports_video",
    "supports_document",
    "cost_per_1k_input",
    "cost_per_1k_output",
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; stored values are always UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_credential(row: UserProvider) -> Credential:
    credential = Credential(
        user_id=row.user_id,
        provider=ProviderType(row.provider),
        encrypted_api_key=row.encrypted_api_key,
        validation_status=ValidationStatus.from_stored(row.validation_status),
        last_validated_at=_aware(row.last_validated),
        is_enabled=bool(row.is_enabled),
        default_model=row.default_model,
        settings=dict(row.settings or {}),
    )
    if row.created_at is not None:
        credential.created_at = _aware(row.created_at)
    if row.updated_at is not None:
        credential.updated_at = _aware(row.updated_at)
    return credential


def _copy_onto(row: UserProvider, credential: Credential) -> None:
    row.encrypted_api_key = credential.encrypted_api_key
    row.validation_status = credential.validation_status.value
    row.last_validated = credential.last_validated_at
    row.is_enabled = credential.is_enabled
    row.default_model = credential.default_model
    row.settings = dict(credential.settings)
    row.updated_at = credential.updated_at


class SqlCredentialRepository:
    """Repository over the ``user_providers`` and ``user_custom_models`` tables.

    Every ``SQLAlchemyError`` is re-raised as ``CredentialStoreError``.

    Example:
        repo = SqlCredentialRepository(get_session_factory())
        store = CredentialStore(repo)
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    # ── Credentials ───────────────────────────────────────────────────

    async def load_credential(
        self, user_id: str, provider: ProviderType
    ) -> Optional[Credential]:
        return await asyncio.to_thread(self._load_credential, user_id, provider)

    async def load_credentials(self, user_id: str) -> list[Credential]:
        return await asyncio.to_thread(self._load_credentials, user_id)

    async def save_credential(self, credential: Credential) -> None:
        await asyncio.to_thread(self._save_credential, credential)

    def _load_credential(self, user_id: str, provider: ProviderType) -> Optional[Credential]:
        try:
            with self.session_factory() as session:
                row = (
                    session.query(UserProvider)
                    .filter_by(user_id=user_id, provider=provider.value)
                    .one_or_none()
                )
                return _to_credential(row) if row else None
        except SQLAlchemyError as e:
            raise CredentialStoreError(
                f"Failed to load credential: {type(e).__name__}", provider
            ) from e
        except ValueError as e:
            raise CredentialStoreError("Stored credential row is unreadable", provider) from e

    def _load_credentials(self, user_id: str) -> list[Credential]:
        try:
            with self.session_factory() as session:
                rows = session.query(UserProvider).filter_by(user_id=user_id).all()
        except SQLAlchemyError as e:
            raise CredentialStoreError(
                f"Failed to load credentials: {type(e).__name__}"
            ) from e

        credentials = []
        for row in rows:
            try:
                credentials.append(_to_credential(row))
            except ValueError:
                logger.warning(
                    "Ignoring unreadable credential row for provider %r", row.provider
                )
        return credentials

    def _save_credential(self, credential: Credential) -> None:
        try:
            self._upsert(credential)
        except IntegrityError:
            # A concurrent writer inserted the row first; overwrite it.
            logger.debug(
                "Concurrent insert for %s/%s, retrying as update",
                credential.user_id, credential.provider.value,
            )
            try:
                self._upsert(credential)
            except SQLAlchemyError as e:
                raise CredentialStoreError(
                    f"Failed to save credential: {type(e).__name__}", credential.provider
                ) from e
        except SQLAlchemyError as e:
            raise CredentialStoreError(
                f"Failed to save credential: {type(e).__name__}", credential.provider
            ) from e

    def _upsert(self, credential: Credential) -> None:
        with self.session_factory() as session:
            with session.begin():
                row = (
                    session.query(UserProvider)
                    .filter_by(user_id=credential.user_id, provider=credential.provider.value)
                    .one_or_none()
                )
                if row is None:
                    row = UserProvider(
                        user_id=credential.user_id,
                        provider=credential.provider.value,
                        created_at=credential.created_at,
                    )
                    session.add(row)
                _copy_onto(row, credential)

    # ── Custom models ─────────────────────────────────────────────────

    async def list_models(
        self, user_id: str, provider: ProviderType
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._list_models, user_id, provider)

    async def add_custom_model(
        self, user_id: str, provider: ProviderType, row: dict[str, Any]
    ) -> None:
        await asyncio.to_thread(self._add_custom_model, user_id, provider, row)

    async def remove_custom_model(
        self, user_id: str, provider: ProviderType, model_id: str
    ) -> bool:
        return await asyncio.to_thread(self._remove_custom_model, user_id, provider, model_id)

    def _list_models(self, user_id: str, provider: ProviderType) -> list[dict[str, Any]]:
        try:
            with self.session_factory() as session:
                rows = (
                    session.query(UserCustomModel)
                    .filter_by(user_id=user_id, provider=provider.value)
                    .order_by(UserCustomModel.created_at, UserCustomModel.model_id)
                    .all()
                )
                return [{f: getattr(r, f) for f in _CUSTOM_MODEL_FIELDS} for r in rows]
        except SQLAlchemyError as e:
            raise CredentialStoreError(
                f"Failed to list custom models: {type(e).__name__}", provider
            ) from e

    def _add_custom_model(self, user_id: str, provider: ProviderType, row: dict[str, Any]) -> None:
        values = {f: row[f] for f in _CUSTOM_MODEL_FIELDS if f in row}
        try:
            with self.session_factory() as session:
                with session.begin():
                    session.add(
                        UserCustomModel(user_id=user_id, provider=provider.value, **values)
                    )
        except SQLAlchemyError as e:
            raise CredentialStoreError(
                f"Failed to add custom model: {type(e).__name__}", provider
            ) from e

    def _remove_custom_model(self, user_id: str, provider: ProviderType, model_id: str) -> bool:
        try:
            with self.session_factory() as session:
                with session.begin():
                    deleted = (
                        session.query(UserCustomModel)
                        .filter_by(user_id=user_id, provider=provider.value, model_id=model_id)
                        .delete()
                    )
            return deleted > 0
        except SQLAlchemyError as e:
            raise CredentialStoreError(
                f"Failed to remove custom model: {type(e).__name__}", provider
            ) from e
