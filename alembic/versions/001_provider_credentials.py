"""Provider credentials and user custom models.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- user_providers ---
    op.create_table(
        "user_providers",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("provider", sa.String(32), nullable=False),
        sa.Column("encrypted_api_key", sa.Text(), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("default_model", sa.String(200), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("last_validated", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "validation_status",
            sa.String(20),
            nullable=False,
            server_default="unvalidated",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "provider", name="uq_user_provider"),
    )
    op.create_index("ix_user_providers_user_id", "user_providers", ["user_id"])

    # --- user_custom_models ---
    op.create_table(
        "user_custom_models",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("provider", sa.String(32), nullable=False),
        sa.Column("model_id", sa.String(200), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("max_tokens", sa.Integer(), nullable=True),
        sa.Column("supports_vision", sa.Boolean(), server_default=sa.false()),
        sa.Column("supports_tools", sa.Boolean(), server_default=sa.false()),
        sa.Column("supports_audio", sa.Boolean(), server_default=sa.false()),
        sa.Column("supports_video", sa.Boolean(), server_default=sa.false()),
        sa.Column("supports_document", sa.Boolean(), server_default=sa.false()),
        sa.Column("cost_per_1k_input", sa.Float(), server_default="0"),
        sa.Column("cost_per_1k_output", sa.Float(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "provider", "model_id", name="uq_user_custom_model"
        ),
    )
    op.create_index(
        "ix_user_custom_models_user_provider",
        "user_custom_models",
        ["user_id", "provider"],
    )


def downgrade() -> None:
    op.drop_index("ix_user_custom_models_user_provider", table_name="user_custom_models")
    op.drop_table("user_custom_models")
    op.drop_index("ix_user_providers_user_id", table_name="user_providers")
    op.drop_table("user_providers")
