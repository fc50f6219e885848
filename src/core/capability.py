"""Capability vocabulary shared by share tokens and bearer links.

Both mechanisms mint a credential for an owner's data and later verify a
presented credential. Share tokens are verified against server state;
bearer links are verified purely by decryption.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, TypeVar, runtime_checkable

from src.models.share_token import ShareToken
from src.repositories.base import ShareTokenRepository
from src.schemas.bearer_link import SharedReport
from src.services import bearer_links, share_tokens

MintedT = TypeVar("MintedT", covariant=True)
VerifiedT = TypeVar("VerifiedT", covariant=True)


@runtime_checkable
class Capability(Protocol[MintedT, VerifiedT]):
    """Mints credentials for an owner's data and checks presented ones.

    ``mint`` arguments depend on the mechanism: an owner and label for share
    tokens, a report and optional access code for bearer links.
    """

    async def mint(self, *args: Any, **kwargs: Any) -> MintedT: ...

    async def verify(
        self,
        credential: str,
        proof: str | None = None,
        now: datetime | None = None,
    ) -> VerifiedT: ...


@dataclass(frozen=True)
class MintedShareToken:
    token: ShareToken
    secret: str


class ShareTokenCapability:
    """Persistent, revocable capability tracked in the token store."""

    def __init__(self, repo: ShareTokenRepository):
        self.repo = repo

    async def mint(
        self,
        owner_id: uuid.UUID,
        label: str,
        recipient_hint: str | None = None,
        notes: str | None = None,
        validity_days: int | None = None,
        now: datetime | None = None,
    ) -> MintedShareToken:
        token, secret = await share_tokens.create_token(
            self.repo,
            owner_id,
            label,
            recipient_hint=recipient_hint,
            notes=notes,
            validity_days=validity_days,
            now=now,
        )
        return MintedShareToken(token=token, secret=secret)

    async def verify(
        self,
        credential: str,
        proof: str | None = None,
        now: datetime | None = None,
    ) -> ShareToken:
        """Resolve a usable token from its secret; ``proof`` is unused."""
        return await share_tokens.get_usable_token(self.repo, credential, now=now)


class BearerLinkCapability:
    """Stateless capability carried entirely by an encrypted link."""

    def __init__(self, base_url: str | None = None):
        self.base_url = base_url

    async def mint(
        self,
        report: SharedReport,
        access_code: str | None = None,
        ttl_hours: int | None = None,
        now: datetime | None = None,
    ) -> bearer_links.MintedLink:
        return bearer_links.mint_link(
            report,
            access_code=access_code,
            ttl_hours=ttl_hours,
            base_url=self.base_url,
            now=now,
        )

    async def verify(
        self,
        credential: str,
        proof: str | None = None,
        now: datetime | None = None,
    ) -> bearer_links.BearerReport:
        """Open a link; ``proof`` is the access code."""
        return bearer_links.open_link(credential, proof or "", now=now)
