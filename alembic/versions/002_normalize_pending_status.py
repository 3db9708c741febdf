"""Normalize legacy 'pending' validation status.

Rows imported from the previous schema carry validation_status
'pending'. Rows without a key become 'unvalidated'. Rows that still
hold a key are left alone; revalidate_credentials settles them against
the live provider.

Idempotent: a second run matches no rows.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    if "user_providers" not in inspector.get_table_names():
        return

    conn.execute(
        sa.text(
            "UPDATE user_providers SET validation_status = 'unvalidated' "
            "WHERE validation_status = 'pending' AND encrypted_api_key IS NULL"
        )
    )


def downgrade() -> None:
    # Original 'pending' rows are indistinguishable from new ones
    pass
