# Business Logic Services
from src.services.access_control import can_access
from src.services.bearer_links import mint_link, open_link, render_qr_code
from src.services.grants import accept_token, list_grants_for_recipient
from src.services.share_tokens import (
    create_token,
    deactivate_token,
    get_usable_token,
    list_tokens,
    lookup_by_secret,
)

__all__ = [
    "accept_token",
    "can_access",
    "create_token",
    "deactivate_token",
    "get_usable_token",
    "list_grants_for_recipient",
    "list_tokens",
    "lookup_by_secret",
    "mint_link",
    "open_link",
    "render_qr_code",
]
