"""SQLAlchemy-backed repositories.

Each repository wraps the request's ``AsyncSession`` and commits its own
single-row write, so every operation is one transactional step.
"""

import uuid
from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError
from src.logging_config import get_logger
from src.models.base import ensure_aware
from src.models.share_grant import ShareGrant
from src.models.share_token import ShareToken
from src.models.user import User
from src.repositories.base import GrantView

logger = get_logger(__name__)

_GRANT_UNIQUE_CONSTRAINT = "uq_share_grant_recipient"


def _is_duplicate_grant(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return _GRANT_UNIQUE_CONSTRAINT in message or (
        "unique" in message and "share_grants" in message
    )


class SqlShareTokenRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, token: ShareToken) -> ShareToken:
        self.db.add(token)
        await self.db.commit()
        await self.db.refresh(token)
        return token

    async def get(self, token_id: uuid.UUID) -> ShareToken | None:
        result = await self.db.execute(
            select(ShareToken).where(ShareToken.id == token_id)
        )
        return result.scalar_one_or_none()

    async def get_by_secret_hash(self, secret_hash: str) -> ShareToken | None:
        result = await self.db.execute(
            select(ShareToken).where(ShareToken.secret_hash == secret_hash)
        )
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: uuid.UUID) -> list[ShareToken]:
        result = await self.db.execute(
            select(ShareToken)
            .where(ShareToken.owner_id == owner_id)
            .order_by(ShareToken.created_at.desc())
        )
        return list(result.scalars().all())

    async def deactivate(self, token: ShareToken) -> ShareToken:
        token.active = False
        await self.db.commit()
        await self.db.refresh(token)
        return token


class SqlGrantRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, grant: ShareGrant) -> ShareGrant:
        # A failed insert rolls back only the savepoint; loaded objects stay live
        try:
            async with self.db.begin_nested():
                self.db.add(grant)
        except IntegrityError as exc:
            if _is_duplicate_grant(exc):
                raise ConflictError(
                    f"Grant already exists for token {grant.token_id}"
                ) from exc
            raise
        await self.db.commit()
        await self.db.refresh(grant)
        return grant

    async def list_for_token(self, token_id: uuid.UUID) -> list[ShareGrant]:
        result = await self.db.execute(
            select(ShareGrant)
            .where(ShareGrant.token_id == token_id)
            .order_by(ShareGrant.accepted_at)
        )
        return list(result.scalars().all())

    async def list_usable_for_recipient(
        self, recipient_id: uuid.UUID, now: datetime
    ) -> list[GrantView]:
        result = await self.db.execute(
            select(ShareGrant, ShareToken, User)
            .join(ShareToken, ShareGrant.token_id == ShareToken.id)
            .join(User, ShareToken.owner_id == User.id)
            .where(
                and_(
                    ShareGrant.recipient_id == recipient_id,
                    ShareToken.active.is_(True),
                    ShareToken.expires_at > now,
                )
            )
            .order_by(ShareGrant.accepted_at.desc())
        )
        return [
            GrantView(
                grant_id=grant.id,
                token_id=token.id,
                accepted_at=ensure_aware(grant.accepted_at),
                label=token.label,
                expires_at=ensure_aware(token.expires_at),
                sharer_id=sharer.id,
                sharer_name=sharer.display_name,
                sharer_email=sharer.email,
            )
            for grant, token, sharer in result.all()
        ]

    async def has_usable_grant(
        self, owner_id: uuid.UUID, recipient_id: uuid.UUID, now: datetime
    ) -> bool:
        result = await self.db.execute(
            select(ShareGrant.id)
            .join(ShareToken, ShareGrant.token_id == ShareToken.id)
            .where(
                and_(
                    ShareToken.owner_id == owner_id,
                    ShareGrant.recipient_id == recipient_id,
                    ShareToken.active.is_(True),
                    ShareToken.expires_at > now,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None


class SqlUserDirectory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: uuid.UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
