"""Permission cache implementations and the factory that picks one from settings."""

import logging

from ..core.config import CacheBackend, Settings
from .base import InMemoryPermissionCache, NullPermissionCache, PermissionCache
from .redis_cache import RedisPermissionCache

logger = logging.getLogger(__name__)


def build_cache(config: Settings) -> PermissionCache:
    """Construct the cache selected by ``CACHE_BACKEND``.

    A Redis server that cannot be reached at startup is not fatal: the
    client keeps degrading every call to a miss until Redis comes back.
    """
    backend = CacheBackend(config.cache_backend)
    if backend == CacheBackend.NONE:
        logger.info("Permission cache disabled; every lookup reads the database")
        return NullPermissionCache()
    if backend == CacheBackend.MEMORY:
        logger.info("Using in-process permission cache")
        return InMemoryPermissionCache()

    cache = RedisPermissionCache.from_url(config.redis_url)
    if cache.ping():
        logger.info("Redis permission cache connected")
    else:
        logger.warning("Redis unreachable at startup; permission lookups will hit the database")
    return cache


__all__ = [
    "PermissionCache",
    "NullPermissionCache",
    "InMemoryPermissionCache",
    "RedisPermissionCache",
    "build_cache",
]
