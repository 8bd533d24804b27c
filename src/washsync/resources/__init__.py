"""Resource definitions, normalizers and accessors."""

from washsync.resources.accessors import MutationAccessor, ResourceAccessor
from washsync.resources.registry import CacheKeys, Registry, build_registry

__all__ = [
    "CacheKeys",
    "MutationAccessor",
    "Registry",
    "ResourceAccessor",
    "build_registry",
]
