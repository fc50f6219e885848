"""Share token model.

A patient mints a share token for a doctor or relative. The raw secret
is handed to the owner once; only its SHA-256 digest is persisted.
A token is usable while it is active and not past ``expires_at``;
deactivation is permanent.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin, ensure_aware

DEFAULT_VALIDITY_DAYS = 7
SECRET_HINT_LENGTH = 6


class ShareToken(Base, TimestampMixin):
    """Persistent capability token owned by a single patient."""

    __tablename__ = "share_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    secret_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )

    secret_hint: Mapped[str] = mapped_column(
        String(SECRET_HINT_LENGTH),
        nullable=False,
    )

    label: Mapped[str] = mapped_column(String(200), nullable=False)

    recipient_hint: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        default=None,
    )

    notes: Mapped[str | None] = mapped_column(Text(), nullable=True, default=None)

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    active: Mapped[bool] = mapped_column(default=True, nullable=False)

    owner = relationship("User", foreign_keys=[owner_id])

    def is_usable(self, now: datetime) -> bool:
        """True while the token is active and ``now`` is before its expiry."""
        return bool(self.active) and ensure_aware(now) < ensure_aware(self.expires_at)

    def __repr__(self) -> str:
        return (
            f"<ShareToken(id={self.id}, owner={self.owner_id}, "
            f"active={self.active})>"
        )
