"""Share token router.

Endpoints for owners to mint, list, and deactivate share tokens, and for
recipients to inspect and accept a token they were given.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from src.config import settings
from src.core.auth import CurrentUser, is_admin, require_patient_or_admin
from src.core.capability import ShareTokenCapability
from src.core.errors import SharingError, to_http_exception
from src.middleware.rate_limit import limiter
from src.repositories import (
    GrantRepository,
    ShareTokenRepository,
    UserDirectory,
    get_grant_repository,
    get_token_repository,
    get_user_directory,
)
from src.schemas.share_token import (
    AcceptShareTokenRequest,
    GrantResponse,
    ShareTokenCreateRequest,
    ShareTokenCreateResponse,
    ShareTokenDeactivateResponse,
    ShareTokenDetailResponse,
    ShareTokenItem,
    ShareTokenListResponse,
)
from src.services.grants import accept_token
from src.services.share_tokens import deactivate_token, list_tokens

router = APIRouter(prefix="/api/tokens", tags=["share-tokens"])

_INVALID_TOKEN_DETAIL = "Share token is invalid, expired or inactive"


def _build_share_url(secret: str) -> str:
    """Frontend page where a recipient pastes or opens the token."""
    return f"{settings.frontend_base_url.rstrip('/')}/dashboard/share?token={secret}"


def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You don't have permission to access this resource",
    )


@router.post(
    "",
    response_model=ShareTokenCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_patient_or_admin)],
)
async def create_share_token(
    data: ShareTokenCreateRequest,
    current_user: CurrentUser,
    tokens: ShareTokenRepository = Depends(get_token_repository),
) -> ShareTokenCreateResponse:
    """Mint a share token.

    The secret is returned once, to be copied by the owner and handed to
    the recipient.
    """
    owner_id = data.owner_id or current_user.id
    if owner_id != current_user.id and not is_admin(current_user):
        raise _forbidden()

    try:
        minted = await ShareTokenCapability(tokens).mint(
            owner_id,
            data.label,
            recipient_hint=data.recipient_hint,
            notes=data.notes,
            validity_days=data.validity_days,
        )
    except SharingError as exc:
        raise to_http_exception(exc) from exc

    return ShareTokenCreateResponse(
        token=ShareTokenItem.model_validate(minted.token),
        secret=minted.secret,
        share_url=_build_share_url(minted.secret),
    )


@router.get("", response_model=ShareTokenListResponse)
async def list_share_tokens(
    current_user: CurrentUser,
    owner_id: uuid.UUID | None = Query(default=None),
    tokens: ShareTokenRepository = Depends(get_token_repository),
) -> ShareTokenListResponse:
    """List an owner's tokens, newest first, including inactive and expired ones."""
    owner_id = owner_id or current_user.id
    if owner_id != current_user.id and not is_admin(current_user):
        raise _forbidden()

    items = [ShareTokenItem.model_validate(t) for t in await list_tokens(tokens, owner_id)]
    return ShareTokenListResponse(tokens=items, count=len(items))


@router.put("/{token_id}/deactivate", response_model=ShareTokenDeactivateResponse)
async def deactivate_share_token(
    token_id: uuid.UUID,
    current_user: CurrentUser,
    tokens: ShareTokenRepository = Depends(get_token_repository),
) -> ShareTokenDeactivateResponse:
    """Deactivate a token. This cannot be undone."""
    try:
        token = await deactivate_token(
            tokens, token_id, current_user.id, current_user.role
        )
    except SharingError as exc:
        raise to_http_exception(exc) from exc

    return ShareTokenDeactivateResponse(
        message="Share token deactivated",
        token=ShareTokenItem.model_validate(token),
    )


@router.get("/by-secret/{secret}", response_model=ShareTokenDetailResponse)
@limiter.limit("20/minute")
async def get_share_token_details(
    request: Request,
    secret: str,
    current_user: CurrentUser,
    tokens: ShareTokenRepository = Depends(get_token_repository),
    users: UserDirectory = Depends(get_user_directory),
) -> ShareTokenDetailResponse:
    """Token metadata for a prospective recipient before accepting.

    Unknown, expired, and inactive tokens all answer 404.
    """
    try:
        token = await ShareTokenCapability(tokens).verify(secret)
    except SharingError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_INVALID_TOKEN_DETAIL,
        ) from exc

    owner = await users.get(token.owner_id)
    return ShareTokenDetailResponse(
        id=token.id,
        label=token.label,
        sender_name=owner.display_name if owner else "Unknown",
        sender_email=owner.email if owner else None,
        created_at=token.created_at,
        expires_at=token.expires_at,
    )


@router.post(
    "/by-secret/{secret}/accept",
    response_model=GrantResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("10/minute")
async def accept_share_token(
    request: Request,
    secret: str,
    current_user: CurrentUser,
    data: AcceptShareTokenRequest | None = None,
    tokens: ShareTokenRepository = Depends(get_token_repository),
    grants: GrantRepository = Depends(get_grant_repository),
    users: UserDirectory = Depends(get_user_directory),
) -> GrantResponse:
    """Accept a share token for the calling recipient."""
    recipient_id = (data.recipient_id if data else None) or current_user.id
    if recipient_id != current_user.id:
        if not is_admin(current_user):
            raise _forbidden()
        if await users.get(recipient_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Recipient not found",
            )

    try:
        grant = await accept_token(tokens, grants, secret, recipient_id)
    except SharingError as exc:
        raise to_http_exception(exc) from exc

    return GrantResponse.model_validate(grant)
