"""
Per-resource read and write accessors.

Read accessors are thin bindings of the orchestrator to one
``ResourceConfig``. Mutation accessors make a single blocking network
call, never consult or fall back to the cache, and on success invalidate
the cache keys their config declares.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from washsync.cache.resource_cache import ResourceCache
from washsync.errors import NotAuthenticatedError, StorageError, SyncError
from washsync.network.client import NetworkClient
from washsync.schema.result import FetchResult
from washsync.session.store import SessionStore
from washsync.sync.orchestrator import SyncOrchestrator
from washsync.sync.resource import BodyFormat, MutationConfig, ResourceConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceAccessor(Generic[T]):
    """Read accessor bound to one resource."""

    def __init__(self, orchestrator: SyncOrchestrator, config: ResourceConfig[T]):
        self._orchestrator = orchestrator
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    async def fetch(self, force_refresh: bool = False) -> FetchResult[T]:
        return await self._orchestrator.fetch(self.config, force_refresh=force_refresh)

    async def __call__(self, force_refresh: bool = False) -> FetchResult[T]:
        return await self.fetch(force_refresh=force_refresh)


class MutationAccessor(Generic[T]):
    """Write accessor bound to one mutation."""

    def __init__(
        self,
        network: NetworkClient,
        session: SessionStore,
        cache: ResourceCache,
        config: MutationConfig[T],
    ):
        self._network = network
        self._session = session
        self._cache = cache
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    async def execute(
        self,
        payload: dict[str, Any] | None = None,
        **path_params: Any,
    ) -> FetchResult[T]:
        """
        Perform the mutation once.

        Args:
            payload: Request body, sent as JSON or form fields per config.
            **path_params: Values substituted into the endpoint template.

        Returns:
            A successful result carrying the parsed response, or a failed
            one carrying the error kind and any per-field messages.
        """
        config = self.config
        try:
            token = await self._session.get_token()
            if config.requires_auth and not token:
                raise NotAuthenticatedError()

            body: dict[str, Any] = {}
            if payload is not None:
                body["form" if config.body_format is BodyFormat.FORM else "json"] = payload

            envelope = await self._network.request(
                config.method,
                config.path(**path_params),
                token=token if config.requires_auth else None,
                timeout=config.timeout,
                **body,
            )
        except SyncError as error:
            logger.warning("%s failed (%s): %s", config.name, error.kind.value, error.message)
            return FetchResult.fail(error)

        await self._invalidate()
        data = config.parse(envelope) if config.parse else envelope.data
        return FetchResult.ok(data, message=envelope.message or config.success_message)

    async def _invalidate(self) -> None:
        if not self.config.invalidates:
            return
        try:
            await self._cache.invalidate_many(self.config.invalidates)
        except StorageError as e:
            logger.error("%s succeeded but cache invalidation failed: %s", self.config.name, e)
        else:
            logger.info("%s invalidated %s", self.config.name, ", ".join(self.config.invalidates))
