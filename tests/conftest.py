"""Shared fixtures: in-memory SQLite schema, repositories and services."""

from typing import AsyncIterator

import logfire
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from userapi.config import CacheConfig, DatabaseConfig, PaginationConfig, ServiceConfig
from userapi.domain.user.service import EntityCache, UserService
from userapi.infrastructure.cache.memory import MemoryCacheBackend
from userapi.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from userapi.infrastructure.persistence.repository.user import SQLAlchemyUserRoleRepository
from userapi.infrastructure.persistence.tables import metadata

# Spans are recorded locally only
logfire.configure(send_to_logfire=False, console=False)


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_db_engine(DatabaseConfig(url="sqlite+aiosqlite:///:memory:"))
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with create_session_factory(engine)() as session:
        yield session


@pytest.fixture
def repository(session: AsyncSession) -> SQLAlchemyUserRoleRepository:
    return SQLAlchemyUserRoleRepository(session)


@pytest.fixture
def memory_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend(max_entries=1000)


@pytest.fixture
def entity_cache(memory_backend: MemoryCacheBackend) -> EntityCache:
    return EntityCache(memory_backend, CacheConfig(enabled=True, backend="memory"))


@pytest.fixture
def service(
    repository: SQLAlchemyUserRoleRepository, entity_cache: EntityCache
) -> UserService:
    return UserService(
        repository=repository,
        cache=entity_cache,
        pagination=PaginationConfig(),
        service_config=ServiceConfig(),
    )
