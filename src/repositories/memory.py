"""In-memory repositories.

Same contracts as the SQL repositories, including the (token, recipient)
uniqueness of grants. Used for tests and local development without a
database. Within one event loop, each method runs without yielding
between its check and its write, so concurrent coroutines cannot both
insert the same grant.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from src.core.errors import ConflictError
from src.models.base import ensure_aware
from src.models.share_grant import ShareGrant
from src.models.share_token import ShareToken
from src.models.user import User
from src.repositories.base import GrantView


@dataclass
class InMemoryStore:
    """Backing tables shared by the in-memory repositories."""

    users: dict[uuid.UUID, User] = field(default_factory=dict)
    tokens: dict[uuid.UUID, ShareToken] = field(default_factory=dict)
    grants: dict[tuple[uuid.UUID, uuid.UUID], ShareGrant] = field(
        default_factory=dict
    )

    def add_user(self, user: User) -> User:
        if user.id is None:
            user.id = uuid.uuid4()
        self.users[user.id] = user
        return user


class InMemoryShareTokenRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def add(self, token: ShareToken) -> ShareToken:
        if any(t.secret_hash == token.secret_hash for t in self.store.tokens.values()):
            raise ConflictError("Share token secret collision")
        self.store.tokens[token.id] = token
        return token

    async def get(self, token_id: uuid.UUID) -> ShareToken | None:
        return self.store.tokens.get(token_id)

    async def get_by_secret_hash(self, secret_hash: str) -> ShareToken | None:
        for token in self.store.tokens.values():
            if token.secret_hash == secret_hash:
                return token
        return None

    async def list_for_owner(self, owner_id: uuid.UUID) -> list[ShareToken]:
        owned = [t for t in reversed(self.store.tokens.values()) if t.owner_id == owner_id]
        return sorted(owned, key=lambda t: ensure_aware(t.created_at), reverse=True)

    async def deactivate(self, token: ShareToken) -> ShareToken:
        stored = self.store.tokens[token.id]
        stored.active = False
        return stored


class InMemoryGrantRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def add(self, grant: ShareGrant) -> ShareGrant:
        key = (grant.token_id, grant.recipient_id)
        if key in self.store.grants:
            raise ConflictError(f"Grant already exists for token {grant.token_id}")
        self.store.grants[key] = grant
        return grant

    async def list_for_token(self, token_id: uuid.UUID) -> list[ShareGrant]:
        return [g for (tid, _), g in self.store.grants.items() if tid == token_id]

    def _usable(self, grant: ShareGrant, now: datetime) -> ShareToken | None:
        token = self.store.tokens.get(grant.token_id)
        if token is None or not token.is_usable(now):
            return None
        return token

    async def list_usable_for_recipient(
        self, recipient_id: uuid.UUID, now: datetime
    ) -> list[GrantView]:
        views = []
        for grant in self.store.grants.values():
            if grant.recipient_id != recipient_id:
                continue
            token = self._usable(grant, now)
            if token is None:
                continue
            sharer = self.store.users.get(token.owner_id)
            views.append(
                GrantView(
                    grant_id=grant.id,
                    token_id=token.id,
                    accepted_at=ensure_aware(grant.accepted_at),
                    label=token.label,
                    expires_at=ensure_aware(token.expires_at),
                    sharer_id=token.owner_id,
                    sharer_name=sharer.display_name if sharer else "Unknown",
                    sharer_email=sharer.email if sharer else None,
                )
            )
        return sorted(views, key=lambda v: v.accepted_at, reverse=True)

    async def has_usable_grant(
        self, owner_id: uuid.UUID, recipient_id: uuid.UUID, now: datetime
    ) -> bool:
        for grant in self.store.grants.values():
            if grant.recipient_id != recipient_id:
                continue
            token = self._usable(grant, now)
            if token is not None and token.owner_id == owner_id:
                return True
        return False


class InMemoryUserDirectory:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, user_id: uuid.UUID) -> User | None:
        return self.store.users.get(user_id)
