"""Bearer link schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SharedReport(BaseModel):
    """Report snapshot embedded in a bearer link."""

    id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., max_length=50_000)
    created_at: datetime


class BearerLinkCreateRequest(BaseModel):
    """Request to mint a bearer link for a report snapshot."""

    report: SharedReport
    access_code: str | None = Field(default=None, max_length=16)
    ttl_hours: int | None = Field(default=None, gt=0)


class BearerLinkResponse(BaseModel):
    """A freshly minted bearer link.

    The access code must be relayed to the recipient separately from the URL.
    """

    url: str
    access_code: str
    expires_at: datetime


class BearerLinkOpenRequest(BaseModel):
    """Open a bearer link: the full URL or its ``data`` value, plus the code."""

    data: str = Field(..., min_length=1, max_length=200_000)
    access_code: str = Field(..., min_length=1, max_length=16)


class BearerLinkOpenResponse(BaseModel):
    report: SharedReport
    expires_at: datetime


class QrCodeRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=4096)
    scale: int = Field(default=5, ge=1, le=20)


class EmailShareRequest(BaseModel):
    """Mint a bearer link and mail it to a recipient."""

    report: SharedReport
    recipient_email: EmailStr
    sender_name: str = Field(..., min_length=1, max_length=200)
    access_code: str | None = Field(default=None, max_length=16)
    ttl_hours: int | None = Field(default=None, gt=0)


class EmailShareResponse(BaseModel):
    url: str
    access_code: str
    expires_at: datetime
    delivered: bool
    delivery_detail: str


class MessagingShareRequest(BaseModel):
    """Mint a bearer link and build messaging deep links for it."""

    report: SharedReport
    phone_number: str = Field(..., min_length=4, max_length=32)
    sender_name: str = Field(..., min_length=1, max_length=200)
    access_code: str | None = Field(default=None, max_length=16)
    ttl_hours: int | None = Field(default=None, gt=0)


class MessagingShareResponse(BaseModel):
    url: str
    access_code: str
    expires_at: datetime
    whatsapp_link: str
    telegram_link: str
