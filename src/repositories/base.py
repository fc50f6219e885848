"""Persistence interfaces for share tokens, grants, and the user directory.

Services receive these explicitly instead of reaching for a global
session, so the same logic runs over SQLAlchemy or the in-memory store.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from src.models.share_grant import ShareGrant
from src.models.share_token import ShareToken
from src.models.user import User


@dataclass(frozen=True)
class GrantView:
    """A live grant enriched with token metadata and sharer identity."""

    grant_id: uuid.UUID
    token_id: uuid.UUID
    accepted_at: datetime
    label: str
    expires_at: datetime
    sharer_id: uuid.UUID
    sharer_name: str
    sharer_email: str | None


class ShareTokenRepository(Protocol):
    async def add(self, token: ShareToken) -> ShareToken: ...

    async def get(self, token_id: uuid.UUID) -> ShareToken | None: ...

    async def get_by_secret_hash(self, secret_hash: str) -> ShareToken | None: ...

    async def list_for_owner(self, owner_id: uuid.UUID) -> list[ShareToken]: ...

    async def deactivate(self, token: ShareToken) -> ShareToken: ...


class GrantRepository(Protocol):
    async def add(self, grant: ShareGrant) -> ShareGrant:
        """Insert a grant.

        Raises:
            ConflictError: If a grant already exists for (token_id, recipient_id).
                Must be enforced atomically by the store.
        """
        ...

    async def list_for_token(self, token_id: uuid.UUID) -> list[ShareGrant]: ...

    async def list_usable_for_recipient(
        self, recipient_id: uuid.UUID, now: datetime
    ) -> list[GrantView]: ...

    async def has_usable_grant(
        self, owner_id: uuid.UUID, recipient_id: uuid.UUID, now: datetime
    ) -> bool: ...


class UserDirectory(Protocol):
    async def get(self, user_id: uuid.UUID) -> User | None: ...
