"""Redis cache backend on redis-py's asyncio client."""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from userapi.domain.shared.error import CacheError
from userapi.domain.user.port.cache import CacheBackend

logger = logging.getLogger(__name__)

# Keys fetched per SCAN round trip during pattern deletes
SCAN_BATCH_SIZE = 500


class RedisCacheBackend(CacheBackend):
    """Shared cache across processes.

    Pattern deletes walk the keyspace with SCAN rather than KEYS so a large
    keyspace never blocks the server. Every redis failure is raised as
    CacheError.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    async def connect(cls, url: str, socket_timeout: float = 1.0) -> "RedisCacheBackend":
        """Open a client and verify it answers PING. Raises CacheError."""
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        backend = cls(client)
        try:
            await backend.ping()
        except CacheError:
            await client.aclose()
            raise
        logger.info("Connected to redis cache")
        return backend

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as e:
            raise CacheError(f"GET {key} failed: {e}") from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise CacheError(f"SET {key} failed: {e}") from e

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._client.delete(*keys)
        except RedisError as e:
            raise CacheError(f"DEL failed: {e}") from e

    async def delete_pattern(self, pattern: str) -> int:
        removed = 0
        batch: list[str] = []
        try:
            async for key in self._client.scan_iter(match=pattern, count=SCAN_BATCH_SIZE):
                batch.append(key)
                if len(batch) >= SCAN_BATCH_SIZE:
                    removed += await self._client.delete(*batch)
                    batch.clear()
            if batch:
                removed += await self._client.delete(*batch)
        except RedisError as e:
            raise CacheError(f"Pattern delete {pattern} failed: {e}") from e
        return removed

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            raise CacheError(f"PING failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
