"""Share grant model.

Records that a recipient accepted a share token. A grant has no expiry of
its own: it is live exactly while its token is usable. Rows are kept after
the token dies as an audit trail.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, utcnow


class ShareGrant(Base):
    """Binds a share token to a concrete recipient.

    Unique constraint on (token_id, recipient_id) makes acceptance
    idempotent-rejecting under concurrent requests.
    """

    __tablename__ = "share_grants"
    __table_args__ = (
        UniqueConstraint("token_id", "recipient_id", name="uq_share_grant_recipient"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    token_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("share_tokens.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    recipient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    accepted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    token = relationship("ShareToken", foreign_keys=[token_id])
    recipient = relationship("User", foreign_keys=[recipient_id])

    def __repr__(self) -> str:
        return (
            f"<ShareGrant(token={self.token_id}, recipient={self.recipient_id})>"
        )
