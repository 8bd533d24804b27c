"""Stale-while-revalidate orchestration over the cache and network client."""

from washsync.sync.orchestrator import SyncOrchestrator
from washsync.sync.resource import BodyFormat, FetchPolicy, MutationConfig, ResourceConfig

__all__ = [
    "BodyFormat",
    "FetchPolicy",
    "MutationConfig",
    "ResourceConfig",
    "SyncOrchestrator",
]
