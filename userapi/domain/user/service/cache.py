"""EntityCache - best-effort read-through cache in front of the repository.

The cache is never authoritative. Every backend failure is logged and
treated as a miss, so a dead cache only costs latency. Keys are namespaced
with the configured prefix::

    {prefix}:user:{id}
    {prefix}:role:{id}
    {prefix}:users:list:{page}:{page_size}
    {prefix}:roles:list:{page}:{page_size}
    {prefix}:user-roles:{user_id}
    {prefix}:role-users:{role_id}
"""

import logging
from typing import Iterable, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from userapi.config import CacheConfig
from userapi.domain.shared.error import CacheError
from userapi.domain.user.model import RoleId, UserId
from userapi.domain.user.port.cache import CacheBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityCache:
    def __init__(self, backend: CacheBackend | None, config: CacheConfig) -> None:
        self._backend = backend
        self._prefix = config.key_prefix
        self.user_ttl = config.user_ttl
        self.role_ttl = config.role_ttl
        self.list_ttl = config.list_ttl

    @property
    def enabled(self) -> bool:
        return self._backend is not None

    # Keys

    def user_key(self, user_id: UserId) -> str:
        return f"{self._prefix}:user:{user_id}"

    def role_key(self, role_id: RoleId) -> str:
        return f"{self._prefix}:role:{role_id}"

    def users_list_key(self, page: int, page_size: int) -> str:
        return f"{self._prefix}:users:list:{page}:{page_size}"

    def roles_list_key(self, page: int, page_size: int) -> str:
        return f"{self._prefix}:roles:list:{page}:{page_size}"

    def user_roles_key(self, user_id: UserId) -> str:
        return f"{self._prefix}:user-roles:{user_id}"

    def role_users_key(self, role_id: RoleId) -> str:
        return f"{self._prefix}:role-users:{role_id}"

    # Patterns

    @property
    def users_lists_pattern(self) -> str:
        return f"{self._prefix}:users:list:*"

    @property
    def roles_lists_pattern(self) -> str:
        return f"{self._prefix}:roles:list:*"

    @property
    def all_user_roles_pattern(self) -> str:
        return f"{self._prefix}:user-roles:*"

    @property
    def all_role_users_pattern(self) -> str:
        return f"{self._prefix}:role-users:*"

    # Operations

    async def read(self, key: str, adapter: TypeAdapter[T]) -> T | None:
        """Return the cached value, or None on miss, failure or bad payload."""
        if self._backend is None:
            return None
        try:
            raw = await self._backend.get(key)
        except CacheError as e:
            logger.warning("Cache read failed for %s: %s", key, e.message)
            return None
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except PydanticValidationError:
            logger.warning("Discarding undecodable cache entry %s", key)
            await self._delete(key)
            return None

    async def write(self, key: str, adapter: TypeAdapter[T], value: T, ttl_seconds: int) -> None:
        if self._backend is None:
            return
        payload = adapter.dump_json(value).decode()
        try:
            await self._backend.set(key, payload, ttl_seconds)
        except CacheError as e:
            logger.warning("Cache write failed for %s: %s", key, e.message)

    async def invalidate(
        self,
        keys: Iterable[str] = (),
        patterns: Iterable[str] = (),
    ) -> None:
        """Drop single keys and every key matching the given glob patterns.

        Must only be called after the corresponding store write committed.
        """
        if self._backend is None:
            return
        await self._delete(*keys)
        for pattern in patterns:
            try:
                removed = await self._backend.delete_pattern(pattern)
            except CacheError as e:
                logger.warning("Cache pattern delete failed for %s: %s", pattern, e.message)
                continue
            logger.debug("Invalidated %d cache entries matching %s", removed, pattern)

    async def ping(self) -> bool:
        """True when the backend answers. A disabled cache reports False."""
        if self._backend is None:
            return False
        try:
            await self._backend.ping()
        except CacheError as e:
            logger.warning("Cache ping failed: %s", e.message)
            return False
        return True

    async def _delete(self, *keys: str) -> None:
        if not keys or self._backend is None:
            return
        try:
            await self._backend.delete(*keys)
        except CacheError as e:
            logger.warning("Cache delete failed for %s: %s", ", ".join(keys), e.message)
