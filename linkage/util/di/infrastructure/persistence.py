"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from linkage.config import Settings
from linkage.domain.repository import AccountDirectory
from linkage.persistence.database import create_engine, create_session_factory
from linkage.persistence.repository import PostgresAccountDirectory
from linkage.util.di.base import ProviderBase
from linkage.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    @provide(scope=Scope.REQUEST)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterator[AsyncSession]:
        """Provide the request transaction.

        Commits when the request finishes, including requests that end in a
        Rejected outcome. Rolls back only when an exception escapes.
        """
        async with session_factory() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logfire.warn("Request transaction rolled back", error=str(e))
                raise
            await session.commit()

    @provide(scope=Scope.REQUEST)
    def get_account_directory(self, session: AsyncSession) -> AccountDirectory:
        """Directory bound to the request transaction."""
        return PostgresAccountDirectory(session)
