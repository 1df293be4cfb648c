"""Cache backend port."""

from abc import abstractmethod
from typing import Protocol

from userapi.domain.shared.port import Port


class CacheBackend(Port, Protocol):
    """Key/value store with per-entry TTL and glob deletes.

    Values are opaque strings. Each single-key operation is atomic; there
    are no cross-key transactions. Implementations raise CacheError on any
    backend failure.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    @abstractmethod
    async def delete(self, *keys: str) -> None: ...

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number removed."""
        ...

    @abstractmethod
    async def ping(self) -> None: ...

    @abstractmethod
    async def close(self) -> None:
        """Release the backend handle. The backend is unusable afterwards."""
        ...
