"""Resource snapshot cache."""

from washsync.cache.resource_cache import CacheEntry, ResourceCache

__all__ = [
    "CacheEntry",
    "ResourceCache",
]
