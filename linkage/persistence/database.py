"""Async engine and session factory for the account directory."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from linkage.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the asyncpg engine; SQL is echoed when DEBUG is set."""
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        connect_args={"server_settings": {"application_name": "linkage"}},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Directory methods flush explicitly; rows stay readable after commit
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
