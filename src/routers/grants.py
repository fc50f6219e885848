"""Grant and access-check router.

Recipients list the shares they can currently use. Report and measurement
services ask ``/api/access/{owner_id}`` whether the caller may read a
patient's data before serving it.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.core.auth import CurrentUser, is_admin, require_owner_or_grantee
from src.repositories import GrantRepository, get_grant_repository
from src.schemas.share_token import (
    AccessCheckResponse,
    GrantListItem,
    GrantListResponse,
)
from src.services.grants import list_grants_for_recipient

router = APIRouter(prefix="/api", tags=["grants"])


@router.get("/grants", response_model=GrantListResponse)
async def list_recipient_grants(
    current_user: CurrentUser,
    recipient_id: uuid.UUID | None = Query(default=None),
    grants: GrantRepository = Depends(get_grant_repository),
) -> GrantListResponse:
    """List currently usable grants of a recipient with sharer display info."""
    recipient_id = recipient_id or current_user.id
    if recipient_id != current_user.id and not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to access this resource",
        )

    views = await list_grants_for_recipient(grants, recipient_id)
    items = [
        GrantListItem(
            grant_id=v.grant_id,
            token_id=v.token_id,
            label=v.label,
            accepted_at=v.accepted_at,
            expires_at=v.expires_at,
            sharer_id=v.sharer_id,
            sharer_name=v.sharer_name,
            sharer_email=v.sharer_email,
        )
        for v in views
    ]
    return GrantListResponse(grants=items, count=len(items))


@router.get(
    "/access/{owner_id}",
    response_model=AccessCheckResponse,
    dependencies=[Depends(require_owner_or_grantee)],
)
async def check_patient_access(owner_id: uuid.UUID) -> AccessCheckResponse:
    """Answer 200 when the caller may read the patient's data, 403 otherwise."""
    return AccessCheckResponse(owner_id=owner_id, allowed=True)
