"""Share token and grant schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ShareTokenCreateRequest(BaseModel):
    """Request to mint a share token.

    ``owner_id`` defaults to the caller; only admins may mint for someone else.
    """

    model_config = ConfigDict(extra="forbid")

    owner_id: uuid.UUID | None = None
    label: str = Field(..., min_length=1, max_length=200)
    recipient_hint: EmailStr | None = None
    notes: str | None = Field(default=None, max_length=2000)
    validity_days: int | None = None


class ShareTokenItem(BaseModel):
    """A share token as shown to its owner (never includes the secret)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    secret_hint: str
    label: str
    recipient_hint: str | None = None
    notes: str | None = None
    created_at: datetime
    expires_at: datetime
    active: bool


class ShareTokenCreateResponse(BaseModel):
    """Response after minting. ``secret`` is shown once and never again."""

    token: ShareTokenItem
    secret: str
    share_url: str


class ShareTokenListResponse(BaseModel):
    tokens: list[ShareTokenItem]
    count: int


class ShareTokenDeactivateResponse(BaseModel):
    message: str
    token: ShareTokenItem


class ShareTokenDetailResponse(BaseModel):
    """Public token details for a prospective recipient (no secret echoed)."""

    id: uuid.UUID
    label: str
    sender_name: str
    sender_email: str | None = None
    created_at: datetime
    expires_at: datetime


class AcceptShareTokenRequest(BaseModel):
    """``recipient_id`` defaults to the caller."""

    recipient_id: uuid.UUID | None = None


class GrantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    token_id: uuid.UUID
    recipient_id: uuid.UUID
    accepted_at: datetime


class GrantListItem(BaseModel):
    """A live grant with the sharer's display info."""

    grant_id: uuid.UUID
    token_id: uuid.UUID
    label: str
    accepted_at: datetime
    expires_at: datetime
    sharer_id: uuid.UUID
    sharer_name: str
    sharer_email: str | None = None


class GrantListResponse(BaseModel):
    grants: list[GrantListItem]
    count: int


class AccessCheckResponse(BaseModel):
    owner_id: uuid.UUID
    allowed: bool
