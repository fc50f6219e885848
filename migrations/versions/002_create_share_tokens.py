"""Create share_tokens table.

Revision ID: 002_share_tokens
Revises: 001_users
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "002_share_tokens"
down_revision = "001_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "share_tokens",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
        ),
        sa.Column(
            "owner_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("secret_hash", sa.String(64), nullable=False),
        sa.Column("secret_hint", sa.String(6), nullable=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("recipient_hint", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_index(
        "ix_share_tokens_owner_id",
        "share_tokens",
        ["owner_id"],
    )
    op.create_index(
        "ix_share_tokens_secret_hash",
        "share_tokens",
        ["secret_hash"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_share_tokens_secret_hash", table_name="share_tokens")
    op.drop_index("ix_share_tokens_owner_id", table_name="share_tokens")
    op.drop_table("share_tokens")
