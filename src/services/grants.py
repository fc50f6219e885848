"""Grant ledger.

A recipient accepts a share token to obtain a grant. Grants cannot be
revoked one by one: the owner cuts access by deactivating the token,
which kills every grant derived from it.
"""

import uuid
from datetime import UTC, datetime

from src.core.errors import ExpiredError, ValidationError
from src.logging_config import get_logger
from src.models.share_grant import ShareGrant
from src.repositories.base import GrantRepository, GrantView, ShareTokenRepository
from src.services.share_tokens import lookup_by_secret

logger = get_logger(__name__)


async def accept_token(
    tokens: ShareTokenRepository,
    grants: GrantRepository,
    secret: str,
    recipient_id: uuid.UUID,
    now: datetime | None = None,
) -> ShareGrant:
    """Accept a share token on behalf of ``recipient_id``.

    Uniqueness of (token, recipient) is left to the grant repository, so two
    racing acceptances produce one grant and one ConflictError.

    Raises:
        NotFoundError: If the secret matches no token.
        ExpiredError: If the token is inactive or expired.
        ValidationError: If the owner tries to accept their own token.
        ConflictError: If this recipient already accepted this token.
    """
    now = now if now is not None else datetime.now(UTC)

    token = await lookup_by_secret(tokens, secret)
    if not token.is_usable(now):
        raise ExpiredError(f"Share token {token.id} is no longer usable")

    if token.owner_id == recipient_id:
        raise ValidationError("You cannot accept your own share token")

    grant = ShareGrant(
        id=uuid.uuid4(),
        token_id=token.id,
        recipient_id=recipient_id,
        accepted_at=now,
    )
    grant = await grants.add(grant)

    logger.info(
        "Share token accepted",
        token_id=str(token.id),
        owner_id=str(token.owner_id),
        recipient_id=str(recipient_id),
        grant_id=str(grant.id),
    )
    return grant


async def list_grants_for_recipient(
    grants: GrantRepository,
    recipient_id: uuid.UUID,
    now: datetime | None = None,
) -> list[GrantView]:
    """Currently usable grants of a recipient, newest acceptance first.

    Usability is evaluated against the token at read time.
    """
    now = now if now is not None else datetime.now(UTC)
    return await grants.list_usable_for_recipient(recipient_id, now)
