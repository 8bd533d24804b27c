"""
Static per-resource configuration.

Instances are immutable and built once at startup (see
``washsync.resources.registry``). The orchestrator and accessors are
generic; everything resource-specific lives here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from washsync.network.client import ApiEnvelope

T = TypeVar("T")


class FetchPolicy(str, Enum):
    """How a read consults the cache before going to the network."""

    # Serve any cached entry at once and refresh it in the background
    STALE_WHILE_REVALIDATE = "stale_while_revalidate"
    # Serve a cached entry only while it is within its TTL, else block
    FRESH_OR_FETCH = "fresh_or_fetch"


class BodyFormat(str, Enum):
    JSON = "json"
    FORM = "form"


@dataclass(frozen=True)
class ResourceConfig(Generic[T]):
    """Describes one readable resource kind."""

    name: str
    endpoint: str
    cache_key: str
    ttl_seconds: float
    timeout: float
    normalize: Callable[[ApiEnvelope], T]
    payload_type: Any
    default_factory: Callable[[], T] | None = None
    method: str = "GET"
    policy: FetchPolicy = FetchPolicy.STALE_WHILE_REVALIDATE
    session_scoped: bool = True

    @cached_property
    def _adapter(self) -> TypeAdapter[Any]:
        return TypeAdapter(self.payload_type)

    def default_payload(self) -> T | None:
        """The static fallback, or None if this resource has none."""
        return self.default_factory() if self.default_factory else None

    def encode(self, payload: T) -> Any:
        """Convert a normalized payload into JSON-compatible data for the cache."""
        return self._adapter.dump_python(payload, mode="json")

    def decode(self, raw: Any) -> T:
        """Rebuild a normalized payload from cached data."""
        return self._adapter.validate_python(raw)


@dataclass(frozen=True)
class MutationConfig(Generic[T]):
    """Describes one write operation and the cache keys it invalidates."""

    name: str
    endpoint: str
    timeout: float
    method: str = "POST"
    body_format: BodyFormat = BodyFormat.JSON
    invalidates: tuple[str, ...] = ()
    parse: Callable[[ApiEnvelope], T] | None = None
    requires_auth: bool = True
    success_message: str = ""

    def path(self, **params: Any) -> str:
        return self.endpoint.format(**params) if params else self.endpoint
