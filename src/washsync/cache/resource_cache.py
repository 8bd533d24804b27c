"""
Keyed snapshot cache with per-read time-to-live.

Each resource kind owns exactly one entry, persisted through the injected
``KeyValueStore`` as ``{"data": ..., "timestamp": <epoch ms>}``. There is
no schema versioning: a value that cannot be decoded reads as absent.
Writes are last-writer-wins and take no lock.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from washsync.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload with the time it was captured (epoch seconds)."""

    key: str
    payload: Any
    captured_at: float

    def age(self, now: float) -> float:
        """Seconds since this entry was captured."""
        return now - self.captured_at

    def is_fresh(self, ttl_seconds: float, now: float) -> bool:
        return self.age(now) < ttl_seconds


class ResourceCache:
    """
    Persisted cache of resource snapshots.

    Usage:
        cache = ResourceCache(DictStore())

        await cache.write("cached_bookings", [...])
        fresh = await cache.read_fresh("cached_bookings", ttl_seconds=120)
        stale_ok = await cache.read_immediate("cached_bookings")
        await cache.invalidate("cached_bookings")

    Storage failures surface as ``StorageError``; the orchestrator decides
    what to do with them.
    """

    def __init__(self, storage: KeyValueStore, clock: Clock | None = None):
        self._storage = storage
        self._clock = clock or time.time
        # Last captured_at written per key, keeps timestamps non-decreasing
        self._last_captured: dict[str, float] = {}

    def now(self) -> float:
        return self._clock()

    async def read_entry(self, key: str) -> CacheEntry | None:
        """Return the full entry, or None if absent or malformed."""
        raw = await self._storage.get(key)
        if raw is None:
            return None

        try:
            document = json.loads(raw)
            payload = document["data"]
            captured_at = float(document["timestamp"]) / 1000.0
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring malformed cache entry %r: %s", key, e)
            return None

        return CacheEntry(key=key, payload=payload, captured_at=captured_at)

    async def read_fresh(self, key: str, ttl_seconds: float) -> Any | None:
        """Return the payload only if it is younger than ``ttl_seconds``."""
        entry = await self.read_entry(key)
        if entry is None:
            logger.debug("Cache miss for %s", key)
            return None
        if not entry.is_fresh(ttl_seconds, self.now()):
            logger.debug("Cache entry %s expired (age %.1fs)", key, entry.age(self.now()))
            return None
        return entry.payload

    async def read_immediate(self, key: str) -> Any | None:
        """Return the payload regardless of age, or None if never populated."""
        entry = await self.read_entry(key)
        return entry.payload if entry else None

    async def write(self, key: str, payload: Any) -> CacheEntry:
        """Overwrite the entry for ``key`` and stamp it with the current time."""
        captured_at = max(self.now(), self._last_captured.get(key, 0.0))
        self._last_captured[key] = captured_at

        document = {"data": payload, "timestamp": round(captured_at * 1000)}
        await self._storage.set(key, json.dumps(document).encode("utf-8"))
        return CacheEntry(key=key, payload=payload, captured_at=captured_at)

    async def invalidate(self, key: str) -> None:
        """Remove the entry for ``key``."""
        await self._storage.remove(key)

    async def invalidate_many(self, keys: Iterable[str]) -> None:
        """Remove several entries at once."""
        keys = tuple(keys)
        if keys:
            logger.debug("Invalidating cache keys: %s", ", ".join(keys))
            await self._storage.remove_many(keys)
