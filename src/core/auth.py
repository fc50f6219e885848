"""Authentication and authorization dependencies.

Callers authenticate with a JWT issued by the identity service, carried
either in the httpOnly session cookie (web) or an Authorization Bearer
header (mobile). Access to another patient's data is decided by the
authorization evaluator on every request.
"""

import uuid
from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, Path, Request, status

from src.config import settings
from src.core.security import TokenData, decode_access_token
from src.logging_config import get_logger
from src.models.user import User, UserRole
from src.repositories import (
    GrantRepository,
    UserDirectory,
    get_grant_repository,
    get_user_directory,
)
from src.services.access_control import can_access

logger = get_logger(__name__)


async def get_current_user(
    request: Request,
    session_token: Annotated[str | None, Cookie(alias=settings.jwt_cookie_name)] = None,
    users: UserDirectory = Depends(get_user_directory),
) -> User:
    """Extract and validate the current user.

    Returns:
        The authenticated User object

    Raises:
        HTTPException 401: If no valid credentials are found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not session_token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header[7:]

    if not session_token:
        raise credentials_exception

    payload = decode_access_token(session_token)
    if payload is None:
        raise credentials_exception

    try:
        token_data = TokenData(payload)
    except (KeyError, ValueError):
        raise credentials_exception

    user = await users.get(token_data.user_id)
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


# ============================================================================
# Role-Based Access Control
# ============================================================================


class RoleChecker:
    """Dependency that verifies the current user has one of the allowed roles.

    Usage:
        @router.post("/tokens", dependencies=[Depends(require_patient_or_admin)])
        async def create(user: CurrentUser): ...
    """

    def __init__(self, allowed_roles: list[UserRole]):
        self.allowed_roles = allowed_roles

    async def __call__(
        self,
        request: Request,
        current_user: CurrentUser,
    ) -> bool:
        if current_user.role not in self.allowed_roles:
            client_ip = request.client.host if request.client else "unknown"
            logger.warning(
                "Unauthorized access attempt",
                user_id=str(current_user.id),
                user_role=current_user.role.value,
                required_roles=[r.value for r in self.allowed_roles],
                path=request.url.path,
                method=request.method,
                client_ip=client_ip,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to access this resource",
            )
        return True


def require_roles(*roles: UserRole) -> RoleChecker:
    """Create a role checker dependency for the specified roles."""
    return RoleChecker(list(roles))


require_patient_or_admin = require_roles(UserRole.PATIENT, UserRole.ADMIN)


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


# ============================================================================
# Owner-or-grantee access to a patient's data
# ============================================================================


class OwnerOrGranteeAccess:
    """Dependency that admits the owner of ``owner_id`` or a doctor with a live grant.

    Usage:
        @router.get("/patients/{owner_id}/reports")
        async def reports(owner_id: uuid.UUID, _: bool = Depends(OwnerOrGranteeAccess())):
            ...
    """

    async def __call__(
        self,
        request: Request,
        current_user: CurrentUser,
        owner_id: Annotated[uuid.UUID, Path()],
        grants: GrantRepository = Depends(get_grant_repository),
    ) -> bool:
        allowed = await can_access(
            grants,
            resource_owner_id=owner_id,
            caller_id=current_user.id,
            caller_role=current_user.role,
        )
        if not allowed:
            logger.warning(
                "Access to patient data denied",
                owner_id=str(owner_id),
                caller_id=str(current_user.id),
                caller_role=current_user.role.value,
                path=request.url.path,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to access this resource",
            )
        return True


require_owner_or_grantee = OwnerOrGranteeAccess()
