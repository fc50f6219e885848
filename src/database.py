"""Database connection and session management.

Uses lazy initialization to ensure the engine is created within
the correct event loop context, avoiding asyncpg event loop issues.
PostgreSQL is the production store; SQLite (aiosqlite) serves local
development and repository tests.
"""

from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import settings
from src.models import Base

# Engine and session maker - lazily initialized
_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly
    dbapi_connection.isolation_level = None


def _begin_sqlite_transaction(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, pooled: bool = True) -> AsyncEngine:
    """Create an async engine for ``database_url``.

    SQLite and unpooled engines use NullPool so connections never outlive
    the event loop that opened them.
    """
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite or not pooled:
        engine = create_async_engine(
            database_url,
            echo=settings.log_format == "text",
            poolclass=NullPool,
        )
    else:
        engine = create_async_engine(
            database_url,
            echo=settings.log_format == "text",
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )

    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _configure_sqlite_connection)
        event.listen(engine.sync_engine, "begin", _begin_sqlite_transaction)
    return engine


def get_engine() -> AsyncEngine:
    """Get or create the application engine."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url, pooled=not settings.testing)
    return _engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Repositories commit per operation and keep returning the same objects
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the session maker."""
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = build_session_maker(get_engine())
    return _async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting database sessions."""
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table directly from the models.

    Only for SQLite development databases and tests; PostgreSQL schemas
    are managed with ``alembic upgrade head``.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_database_connection() -> bool:
    """
    Check if the database is reachable.

    Returns:
        True if database is connected, False otherwise.
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
            return True
    except Exception:
        return False


async def close_database() -> None:
    """Close the database engine and all connections."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
