"""Bearer link router.

Owners mint encrypted report links and hand them out by email or
messaging; anyone holding a link and its access code can open it without
an account.
"""

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response

from src.core.auth import CurrentUser
from src.core.capability import BearerLinkCapability
from src.core.errors import SharingError, to_http_exception
from src.logging_config import get_logger
from src.middleware.rate_limit import limiter
from src.schemas.bearer_link import (
    BearerLinkCreateRequest,
    BearerLinkOpenRequest,
    BearerLinkOpenResponse,
    BearerLinkResponse,
    EmailShareRequest,
    EmailShareResponse,
    MessagingShareRequest,
    MessagingShareResponse,
    QrCodeRequest,
)
from src.services.bearer_links import render_qr_code
from src.services.distribution import share_by_email, share_by_messaging

logger = get_logger(__name__)

router = APIRouter(prefix="/api/bearer-links", tags=["bearer-links"])


@router.post(
    "",
    response_model=BearerLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_bearer_link(
    data: BearerLinkCreateRequest,
    current_user: CurrentUser,
) -> BearerLinkResponse:
    """Mint a bearer link; the access code is generated when not supplied."""
    try:
        link = await BearerLinkCapability().mint(
            data.report,
            access_code=data.access_code,
            ttl_hours=data.ttl_hours,
        )
    except SharingError as exc:
        raise to_http_exception(exc) from exc

    logger.info(
        "Bearer link created",
        user_id=str(current_user.id),
        report_id=data.report.id,
    )
    return BearerLinkResponse(
        url=link.url, access_code=link.access_code, expires_at=link.expires_at
    )


@router.post("/open", response_model=BearerLinkOpenResponse)
@limiter.limit("10/minute")
async def open_bearer_link(
    request: Request,
    data: BearerLinkOpenRequest,
) -> BearerLinkOpenResponse:
    """Open a bearer link with its access code.

    No authentication: the link and the code together are the credential.
    A wrong code and a tampered link give the same answer.
    """
    try:
        opened = await BearerLinkCapability().verify(data.data, data.access_code)
    except SharingError as exc:
        logger.warning("Bearer link open failed", reason=exc.kind.value)
        raise to_http_exception(exc) from exc

    return BearerLinkOpenResponse(report=opened.report, expires_at=opened.expires_at)


@router.post(
    "/qr",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def create_qr_code(
    data: QrCodeRequest,
    current_user: CurrentUser,
) -> Response:
    """Render a link as a PNG QR code."""
    try:
        png = render_qr_code(data.url, scale=data.scale)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="URL is too long to encode as a QR code",
        ) from exc
    return Response(content=png, media_type="image/png")


@router.post(
    "/share/email",
    response_model=EmailShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_bearer_link_by_email(
    data: EmailShareRequest,
    current_user: CurrentUser,
) -> EmailShareResponse:
    """Mint a link and email the link and the access code separately.

    The link is returned even when delivery fails so it can be relayed by hand.
    """
    try:
        link, delivery = await share_by_email(
            data.report,
            data.recipient_email,
            data.sender_name,
            access_code=data.access_code,
            ttl_hours=data.ttl_hours,
        )
    except SharingError as exc:
        raise to_http_exception(exc) from exc

    logger.info(
        "Bearer link shared by email",
        user_id=str(current_user.id),
        report_id=data.report.id,
        delivered=delivery.success,
    )
    return EmailShareResponse(
        url=link.url,
        access_code=link.access_code,
        expires_at=link.expires_at,
        delivered=delivery.success,
        delivery_detail=delivery.detail,
    )


@router.post(
    "/share/messaging",
    response_model=MessagingShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_bearer_link_by_messaging(
    data: MessagingShareRequest,
    current_user: CurrentUser,
) -> MessagingShareResponse:
    """Mint a link and build WhatsApp and Telegram deep links for it."""
    try:
        link, whatsapp_link, telegram_link = share_by_messaging(
            data.report,
            data.phone_number,
            data.sender_name,
            access_code=data.access_code,
            ttl_hours=data.ttl_hours,
        )
    except SharingError as exc:
        raise to_http_exception(exc) from exc

    return MessagingShareResponse(
        url=link.url,
        access_code=link.access_code,
        expires_at=link.expires_at,
        whatsapp_link=whatsapp_link,
        telegram_link=telegram_link,
    )
