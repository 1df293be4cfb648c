from typing import AsyncIterable

from dishka import Provider, Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from userapi.config import Config
from userapi.domain.user.port.repository import UserRoleRepository
from userapi.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from userapi.infrastructure.persistence.repository.user import SQLAlchemyUserRoleRepository


class PersistenceProvider(Provider):
    # Factories require method syntax
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
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
    ) -> AsyncIterable[AsyncSession]:
        async with session_factory() as session:
            yield session

    @provide(scope=Scope.REQUEST)
    def get_repository(self, session: AsyncSession, config: Config) -> UserRoleRepository:
        return SQLAlchemyUserRoleRepository(
            session, case_sensitive_role_names=config.roles.case_sensitive_names
        )
