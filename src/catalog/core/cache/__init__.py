"""Cache access layer: backends, key namespace, typed results and the cache-aside service."""

from . import keys
from .backend import CacheBackend, InMemoryCacheBackend, RedisCacheBackend
from .cache_service import CacheService
from .results import CacheLookup, CacheStats, CacheStatus

__all__ = [
    "keys",
    "CacheBackend",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "CacheService",
    "CacheLookup",
    "CacheStats",
    "CacheStatus",
]
