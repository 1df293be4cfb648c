from .cache import EntityCache
from .user import UserService

__all__ = ["EntityCache", "UserService"]
