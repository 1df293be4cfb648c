import logging
from typing import AsyncIterable

from dishka import Provider, Scope, provide

from userapi.config import CacheConfig, Config
from userapi.domain.shared.error import CacheError
from userapi.domain.user.port.cache import CacheBackend
from userapi.domain.user.service.cache import EntityCache
from userapi.infrastructure.cache.memory import MemoryCacheBackend
from userapi.infrastructure.cache.redis import RedisCacheBackend

logger = logging.getLogger(__name__)


async def open_backend(config: CacheConfig) -> CacheBackend | None:
    """Build the configured backend.

    Returns None when caching is disabled or the backend is unreachable,
    which turns every cache call into a no-op.
    """
    if not config.enabled:
        logger.info("Cache disabled")
        return None

    if config.backend == "memory":
        return MemoryCacheBackend(max_entries=config.max_entries)

    try:
        return await RedisCacheBackend.connect(config.url, config.socket_timeout)
    except CacheError as e:
        logger.warning("Cache unavailable, continuing without it: %s", e.message)
        return None


class CacheProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_entity_cache(self, config: Config) -> AsyncIterable[EntityCache]:
        # The backend handle lives exactly as long as the container
        backend = await open_backend(config.cache)
        try:
            yield EntityCache(backend, config.cache)
        finally:
            if backend is not None:
                await backend.close()
