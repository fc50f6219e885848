"""Authorization evaluator for owner-scoped resources.

Decides whether a caller may read resources belonging to a patient.
Evaluated fresh on every request with no caching, so a deactivated token
stops authorizing on the very next request.
"""

import uuid
from datetime import UTC, datetime

from src.models.user import UserRole
from src.repositories.base import GrantRepository


async def can_access(
    grants: GrantRepository,
    resource_owner_id: uuid.UUID,
    caller_id: uuid.UUID,
    caller_role: UserRole | str,
    now: datetime | None = None,
) -> bool:
    """Return True if the caller may access the owner's resources.

    Order of checks:
    1. The owner always has access.
    2. Any other caller must be a doctor.
    3. The doctor needs a grant on a currently usable token of the owner.
    """
    if caller_id == resource_owner_id:
        return True

    if caller_role != UserRole.DOCTOR:
        return False

    now = now if now is not None else datetime.now(UTC)
    return await grants.has_usable_grant(resource_owner_id, caller_id, now)
