# Database Models
from src.models.base import Base, TimestampMixin
from src.models.share_grant import ShareGrant
from src.models.share_token import ShareToken
from src.models.user import User, UserRole

__all__ = [
    "Base",
    "ShareGrant",
    "ShareToken",
    "TimestampMixin",
    "User",
    "UserRole",
]
