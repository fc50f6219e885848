"""Share token store.

Handles minting, listing, deactivating, and resolving persistent share
tokens. The raw secret leaves this module exactly once, as the second
element returned by ``create_token``.
"""

import uuid
from datetime import UTC, datetime, timedelta

from src.config import settings
from src.core.errors import ExpiredError, ForbiddenError, NotFoundError, ValidationError
from src.core.security import generate_token_secret, hash_secret, secrets_match
from src.logging_config import get_logger
from src.models.share_token import SECRET_HINT_LENGTH, ShareToken
from src.models.user import UserRole
from src.repositories.base import ShareTokenRepository

logger = get_logger(__name__)

MAX_LABEL_LENGTH = 200


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


async def create_token(
    repo: ShareTokenRepository,
    owner_id: uuid.UUID,
    label: str,
    recipient_hint: str | None = None,
    notes: str | None = None,
    validity_days: int | None = None,
    now: datetime | None = None,
) -> tuple[ShareToken, str]:
    """Mint a new share token for ``owner_id``.

    Args:
        repo: Token repository.
        owner_id: The patient sharing their reports.
        label: Human label shown to the owner and the recipient.
        recipient_hint: Optional email of the intended recipient (advisory).
        notes: Optional free-form notes.
        validity_days: Lifetime in days (default 7).
        now: Current time override.

    Returns:
        Tuple of (ShareToken, raw secret). The raw secret is only available
        here and must be shown to the owner immediately.

    Raises:
        ValidationError: If the label is empty or the validity window is invalid.
    """
    if validity_days is None:
        validity_days = settings.share_token_default_validity_days

    label = (label or "").strip()
    if not label:
        raise ValidationError("A share label is required")
    if len(label) > MAX_LABEL_LENGTH:
        raise ValidationError(f"Label must be at most {MAX_LABEL_LENGTH} characters")
    if validity_days <= 0:
        raise ValidationError("Validity must be at least one day")
    if validity_days > settings.share_token_max_validity_days:
        raise ValidationError(
            f"Validity cannot exceed {settings.share_token_max_validity_days} days"
        )

    created_at = _now(now)
    secret = generate_token_secret()
    token = ShareToken(
        id=uuid.uuid4(),
        owner_id=owner_id,
        secret_hash=hash_secret(secret),
        secret_hint=secret[:SECRET_HINT_LENGTH],
        label=label,
        recipient_hint=recipient_hint or None,
        notes=notes or None,
        created_at=created_at,
        updated_at=created_at,
        expires_at=created_at + timedelta(days=validity_days),
        active=True,
    )
    token = await repo.add(token)

    logger.info(
        "Created share token",
        owner_id=str(owner_id),
        token_id=str(token.id),
        validity_days=validity_days,
    )
    return token, secret


async def list_tokens(
    repo: ShareTokenRepository,
    owner_id: uuid.UUID,
) -> list[ShareToken]:
    """List every token of an owner, newest first, including dead ones."""
    return await repo.list_for_owner(owner_id)


async def deactivate_token(
    repo: ShareTokenRepository,
    token_id: uuid.UUID,
    caller_id: uuid.UUID,
    caller_role: UserRole | str,
) -> ShareToken:
    """Permanently deactivate a token.

    Deactivating an already-inactive token succeeds without a write.

    Raises:
        NotFoundError: If the token does not exist.
        ForbiddenError: If the caller is neither the owner nor an admin.
    """
    token = await repo.get(token_id)
    if token is None:
        raise NotFoundError(f"Share token {token_id} not found")

    if token.owner_id != caller_id and caller_role != UserRole.ADMIN:
        logger.warning(
            "Share token deactivation refused",
            token_id=str(token_id),
            caller_id=str(caller_id),
        )
        raise ForbiddenError(f"Caller {caller_id} does not own token {token_id}")

    if not token.active:
        return token

    token = await repo.deactivate(token)
    logger.info(
        "Deactivated share token",
        token_id=str(token_id),
        owner_id=str(token.owner_id),
        caller_id=str(caller_id),
    )
    return token


async def lookup_by_secret(
    repo: ShareTokenRepository,
    secret: str,
) -> ShareToken:
    """Resolve a token from its raw secret, whatever its state.

    Raises:
        NotFoundError: If no token carries this secret.
    """
    digest = hash_secret(secret)
    token = await repo.get_by_secret_hash(digest)
    if token is None or not secrets_match(secret, token.secret_hash):
        raise NotFoundError("No share token matches this secret")
    return token


async def get_usable_token(
    repo: ShareTokenRepository,
    secret: str,
    now: datetime | None = None,
) -> ShareToken:
    """Resolve a token and require it to be usable right now.

    Raises:
        NotFoundError: If no token carries this secret.
        ExpiredError: If the token is inactive or past its expiry.
    """
    token = await lookup_by_secret(repo, secret)
    if not token.is_usable(_now(now)):
        raise ExpiredError(f"Share token {token.id} is no longer usable")
    return token
