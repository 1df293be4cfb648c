"""User domain models."""

from .health import CacheStatus, HealthReport
from .role import Role
from .user import User
from .user_role import UserRole
from .value import RoleId, UserId

__all__ = [
    "CacheStatus",
    "HealthReport",
    "Role",
    "RoleId",
    "User",
    "UserId",
    "UserRole",
]
