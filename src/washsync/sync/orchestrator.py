"""
Stale-while-revalidate read orchestration.

Per call::

    START -> CACHE_ONLY | BACKGROUND_REFRESH | BLOCKING_FETCH -> DONE

- ``BACKGROUND_REFRESH``: a cached payload exists and ``force_refresh`` is
  false. The cached payload is returned at once and a detached task
  refetches; its success overwrites the cache, its failure is logged and
  otherwise ignored.
- ``CACHE_ONLY``: the resource uses ``FRESH_OR_FETCH`` and the entry is
  within its TTL. No network call.
- ``BLOCKING_FETCH``: forced, or nothing usable is cached. On failure the
  fallback chain is consulted in order: last cached payload, the
  resource's static default, then failure.

Every call yields exactly one ``FetchResult``. Errors below this layer
never escape it.

Two overlapping fetches of the same resource are not coalesced: both hit
the network and whichever response lands last wins the cache write.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

from pydantic import ValidationError as ModelValidationError

from washsync.cache.resource_cache import ResourceCache
from washsync.errors import NetworkError, NotAuthenticatedError, StorageError, SyncError
from washsync.network.client import NetworkClient
from washsync.schema.result import FetchResult, ResultSource
from washsync.session.store import SessionStore
from washsync.sync.resource import FetchPolicy, ResourceConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncOrchestrator:
    """
    Mediates every network-backed read.

    Usage:
        orchestrator = SyncOrchestrator(cache, network, session)
        result = await orchestrator.fetch(BOOKINGS)
        result = await orchestrator.fetch(BOOKINGS, force_refresh=True)

        # On shutdown, let background refreshes finish
        await orchestrator.drain()
    """

    def __init__(
        self,
        cache: ResourceCache,
        network: NetworkClient,
        session: SessionStore,
    ):
        self._cache = cache
        self._network = network
        self._session = session
        self._background: set[asyncio.Task[None]] = set()

    @property
    def pending_refreshes(self) -> int:
        return len(self._background)

    async def fetch(self, config: ResourceConfig[T], force_refresh: bool = False) -> FetchResult[T]:
        """Read a resource according to its policy. Never raises."""
        token = await self._token()

        if not force_refresh:
            cached = await self._read_cached(config)
            if cached is not None:
                if config.policy is FetchPolicy.STALE_WHILE_REVALIDATE and token:
                    self._refresh_in_background(config, token)
                logger.debug("Serving %s from cache", config.name)
                return FetchResult.ok(cached, source=ResultSource.CACHE)

        return await self._blocking_fetch(config, token)

    async def drain(self) -> None:
        """Wait until every background refresh has finished."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # === Cache access ===

    async def _token(self) -> str | None:
        try:
            return await self._session.get_token()
        except StorageError as e:
            logger.warning("Cannot read session token: %s", e)
            return None

    async def _read_cached(self, config: ResourceConfig[T]) -> T | None:
        try:
            if config.policy is FetchPolicy.FRESH_OR_FETCH:
                raw = await self._cache.read_fresh(config.cache_key, config.ttl_seconds)
            else:
                raw = await self._cache.read_immediate(config.cache_key)
        except StorageError as e:
            logger.warning("Cache read for %s failed: %s", config.name, e)
            return None
        return self._decode(config, raw)

    async def _read_stale(self, config: ResourceConfig[T]) -> T | None:
        try:
            raw = await self._cache.read_immediate(config.cache_key)
        except StorageError as e:
            logger.warning("Cache read for %s failed: %s", config.name, e)
            return None
        return self._decode(config, raw)

    @staticmethod
    def _decode(config: ResourceConfig[T], raw: Any) -> T | None:
        if raw is None:
            return None
        try:
            return config.decode(raw)
        except ModelValidationError as e:
            logger.warning("Discarding cached %s that no longer validates: %s", config.name, e.error_count())
            return None

    async def _store(self, config: ResourceConfig[T], payload: T, token: str) -> None:
        # A response that lands after logout (or a re-login) must not repopulate the cache
        if config.session_scoped and await self._token() != token:
            logger.info("Session changed while fetching %s, dropping response", config.name)
            return
        try:
            await self._cache.write(config.cache_key, config.encode(payload))
        except StorageError as e:
            logger.warning("Cache write for %s failed: %s", config.name, e)

    # === Network ===

    async def _fetch_remote(self, config: ResourceConfig[T], token: str) -> T:
        envelope = await self._network.request(
            config.method,
            config.endpoint,
            token=token,
            timeout=config.timeout,
        )
        try:
            return config.normalize(envelope)
        except (ValueError, TypeError, LookupError, AttributeError, ArithmeticError) as e:
            logger.warning("Cannot normalize %s response: %r", config.name, e)
            raise NetworkError("Invalid response from server. Please try again.") from e

    async def _blocking_fetch(self, config: ResourceConfig[T], token: str | None) -> FetchResult[T]:
        try:
            if not token:
                raise NotAuthenticatedError(f"Please login to view {config.name.replace('_', ' ')}")
            payload = await self._fetch_remote(config, token)
        except SyncError as error:
            return await self._fall_back(config, error)

        await self._store(config, payload, token)
        return FetchResult.ok(payload, source=ResultSource.NETWORK)

    async def _fall_back(self, config: ResourceConfig[T], error: SyncError) -> FetchResult[T]:
        stale = await self._read_stale(config)
        if stale is not None:
            logger.warning("Fetching %s failed (%s), serving stale cache", config.name, error.kind.value)
            return FetchResult.degraded(stale, ResultSource.STALE, error)

        default = config.default_payload()
        if default is not None:
            logger.warning("Fetching %s failed (%s), serving default", config.name, error.kind.value)
            return FetchResult.degraded(default, ResultSource.DEFAULT, error)

        logger.warning("Fetching %s failed: %s", config.name, error.message)
        return FetchResult.fail(error)

    # === Background refresh ===

    def _refresh_in_background(self, config: ResourceConfig[T], token: str) -> None:
        task = asyncio.create_task(self._refresh(config, token), name=f"refresh:{config.cache_key}")
        self._background.add(task)
        task.add_done_callback(self._on_refresh_done)

    async def _refresh(self, config: ResourceConfig[T], token: str) -> None:
        try:
            payload = await self._fetch_remote(config, token)
        except SyncError as e:
            logger.warning("Background refresh of %s failed: %s", config.name, e.message)
            return
        await self._store(config, payload, token)
        logger.debug("Background refresh of %s stored", config.name)

    def _on_refresh_done(self, task: asyncio.Task[None]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background refresh %s crashed", task.get_name(), exc_info=exc)
