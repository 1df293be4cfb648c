"""User domain ports."""

from .cache import CacheBackend
from .repository import UserRoleRepository

__all__ = [
    "CacheBackend",
    "UserRoleRepository",
]
