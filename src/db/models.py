"""SQLAlchemy ORM models for the credential engine.

Tables:
- user_providers: one row per (user, provider) with the encrypted API key,
  validation state and user preferences
- user_custom_models: user-defined models attached to a provider
"""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from src.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class UserProvider(Base):
    """Per-user, per-provider credential row."""

    __tablename__ = "user_providers"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False)
    provider = Column(String(32), nullable=False)
    encrypted_api_key = Column(Text, nullable=True)
    is_enabled = Column(Boolean, nullable=False, default=False)
    default_model = Column(String(200), nullable=True)
    settings = Column(JSON, nullable=False, default=dict)
    last_validated = Column(DateTime(timezone=True), nullable=True)
    # 'unvalidated', 'valid', 'invalid' (legacy rows may hold 'pending')
    validation_status = Column(String(20), nullable=False, default="unvalidated")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_user_provider"),
        Index("ix_user_providers_user_id", "user_id"),
    )


class UserCustomModel(Base):
    """A model the user added by hand for one of their providers."""

    __tablename__ = "user_custom_models"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False)
    provider = Column(String(32), nullable=False)
    model_id = Column(String(200), nullable=False)
    display_name = Column(String(200), nullable=False)
    description = Column(Text, default="")
    max_tokens = Column(Integer, default=128_000)
    supports_vision = Column(Boolean, default=False)
    supports_tools = Column(Boolean, default=False)
    supports_audio = Column(Boolean, default=False)
    supports_video = Column(Boolean, default=False)
    supports_document = Column(Boolean, default=False)
    cost_per_1k_input = Column(Float, default=0.0)
    cost_per_1k_output = Column(Float, default=0.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "provider", "model_id", name="uq_user_custom_model"),
        Index("ix_user_custom_models_user_provider", "user_id", "provider"),
    )
