from .di import CacheProvider

__all__ = ["CacheProvider"]
