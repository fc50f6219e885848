"""Repository package and FastAPI dependencies.

Routers depend on the ``get_*`` providers below; tests override them with
in-memory repositories via ``app.dependency_overrides``.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.repositories.base import (
    GrantRepository,
    GrantView,
    ShareTokenRepository,
    UserDirectory,
)
from src.repositories.sql import (
    SqlGrantRepository,
    SqlShareTokenRepository,
    SqlUserDirectory,
)


async def get_token_repository(
    db: AsyncSession = Depends(get_db),
) -> ShareTokenRepository:
    return SqlShareTokenRepository(db)


async def get_grant_repository(
    db: AsyncSession = Depends(get_db),
) -> GrantRepository:
    return SqlGrantRepository(db)


async def get_user_directory(
    db: AsyncSession = Depends(get_db),
) -> UserDirectory:
    return SqlUserDirectory(db)


__all__ = [
    "GrantRepository",
    "GrantView",
    "ShareTokenRepository",
    "UserDirectory",
    "get_grant_repository",
    "get_token_repository",
    "get_user_directory",
]
