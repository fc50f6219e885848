"""Create share_grants table.

Revision ID: 003_share_grants
Revises: 002_share_tokens
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "003_share_grants"
down_revision = "002_share_tokens"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "share_grants",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
        ),
        sa.Column(
            "token_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("share_tokens.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "recipient_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "accepted_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "token_id", "recipient_id", name="uq_share_grant_recipient"
        ),
    )

    op.create_index(
        "ix_share_grants_token_id",
        "share_grants",
        ["token_id"],
    )
    op.create_index(
        "ix_share_grants_recipient_id",
        "share_grants",
        ["recipient_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_share_grants_recipient_id", table_name="share_grants")
    op.drop_index("ix_share_grants_token_id", table_name="share_grants")
    op.drop_table("share_grants")
