"""
High-level booking API.

This is the main entry point for screens and scripts. It wires storage,
cache, session, network client and orchestrator together and exposes one
coroutine per resource read and per mutation, each returning a
``FetchResult``.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx

from washsync.cache.resource_cache import Clock, ResourceCache
from washsync.config import Settings
from washsync.errors import StorageError, SyncError
from washsync.network.client import NetworkClient
from washsync.network.deadline import Scheduler
from washsync.resources.accessors import MutationAccessor, ResourceAccessor
from washsync.resources.registry import Registry, build_registry
from washsync.schema.records import (
    FAQ,
    Alert,
    Booking,
    BookingRequest,
    OwnerBookings,
    ServiceCenter,
    UserProfile,
)
from washsync.schema.result import FetchResult
from washsync.session.store import SessionStore
from washsync.storage.base import KeyValueStore
from washsync.storage.sqlite_store import SQLiteStore
from washsync.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


class BookingAPI:
    """
    Unified client for the car-wash booking backend.

    Usage:
        async with BookingAPI(Settings.from_env()) as api:
            await api.login("me@example.com", "secret")

            # Instant, possibly stale; refreshed in the background
            result = await api.get_bookings()

            # Blocking fetch, falls back to stale cache on failure
            result = await api.get_bookings(force_refresh=True)

            # Mutations never fall back; they invalidate dependent caches
            result = await api.create_booking(BookingRequest(...))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: KeyValueStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.settings = settings or Settings()
        self.registry: Registry = build_registry(self.settings)

        self._storage = storage or SQLiteStore(self.settings.database_path)
        self.cache = ResourceCache(self._storage, clock=clock)
        self.session = SessionStore(self._storage, self.cache, self.registry.session_scoped_keys)
        self.network = NetworkClient(
            self.settings.api_url,
            http_client=http_client,
            default_timeout=self.settings.read_timeout,
            scheduler=scheduler,
        )
        self.orchestrator = SyncOrchestrator(self.cache, self.network, self.session)

        self._readers: dict[str, ResourceAccessor[Any]] = {
            name: ResourceAccessor(self.orchestrator, config)
            for name, config in self.registry.resources.items()
        }
        self._writers: dict[str, MutationAccessor[Any]] = {
            name: MutationAccessor(self.network, self.session, self.cache, config)
            for name, config in self.registry.mutations.items()
        }
        self._detached: set[asyncio.Task[None]] = set()
        self._initialized = False

    async def initialize(self) -> None:
        """Open persisted storage."""
        if self._initialized:
            return
        await self._storage.initialize()
        self._initialized = True

    async def close(self) -> None:
        """Let background work finish, then release connections."""
        await self.orchestrator.drain()
        if self._detached:
            await asyncio.gather(*self._detached, return_exceptions=True)
        await self.network.close()
        await self._storage.close()
        self._initialized = False

    async def __aenter__(self) -> BookingAPI:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def reader(self, name: str) -> ResourceAccessor[Any]:
        return self._readers[name]

    def writer(self, name: str) -> MutationAccessor[Any]:
        return self._writers[name]

    # === Reads ===

    async def get_bookings(self, force_refresh: bool = False) -> FetchResult[list[Booking]]:
        return await self._readers["bookings"].fetch(force_refresh)

    async def get_service_centers(self, force_refresh: bool = False) -> FetchResult[list[ServiceCenter]]:
        return await self._readers["service_centers"].fetch(force_refresh)

    async def get_alerts(self, force_refresh: bool = False) -> FetchResult[list[Alert]]:
        return await self._readers["alerts"].fetch(force_refresh)

    async def get_owner_bookings(self, force_refresh: bool = False) -> FetchResult[OwnerBookings]:
        return await self._readers["owner_bookings"].fetch(force_refresh)

    async def get_owner_alerts(self, force_refresh: bool = False) -> FetchResult[list[Alert]]:
        return await self._readers["owner_alerts"].fetch(force_refresh)

    async def get_faqs(self, force_refresh: bool = False) -> FetchResult[list[FAQ]]:
        return await self._readers["faqs"].fetch(force_refresh)

    # === Bookings ===

    async def create_booking(self, request: BookingRequest) -> FetchResult[str]:
        """Book a wash. On success ``data`` is the server's booking id."""
        return await self._writers["create_booking"].execute(request.to_form())

    async def cancel_booking(self, booking_id: str) -> FetchResult[Any]:
        return await self._writers["cancel_booking"].execute(
            {"booking_id": booking_id, "status": "cancelled"}
        )

    async def cancel_owner_booking(self, booking_id: str) -> FetchResult[Any]:
        return await self._writers["cancel_owner_booking"].execute(
            {"booking_id": booking_id, "status": "cancelled"}
        )

    async def complete_owner_booking(self, booking_id: str) -> FetchResult[Any]:
        return await self._writers["complete_owner_booking"].execute(
            {"booking_id": booking_id, "status": "completed"}
        )

    # === Alerts ===

    async def mark_alert_read(self, alert_id: str | int) -> FetchResult[Any]:
        return await self._writers["mark_alert_read"].execute(alert_id=alert_id)

    async def mark_all_alerts_read(self) -> FetchResult[Any]:
        return await self._writers["mark_all_alerts_read"].execute()

    async def mark_owner_alert_read(self, alert_id: str | int) -> FetchResult[Any]:
        return await self._writers["mark_owner_alert_read"].execute(alert_id=alert_id)

    async def mark_all_owner_alerts_read(self) -> FetchResult[Any]:
        return await self._writers["mark_all_owner_alerts_read"].execute()

    # === Profile ===

    async def edit_profile(self, name: str, phone: str) -> FetchResult[UserProfile]:
        """Update name and phone; the stored profile follows on success."""
        return await self._edit_profile("edit_profile", name, phone)

    async def edit_owner_profile(self, name: str, phone: str) -> FetchResult[UserProfile]:
        return await self._edit_profile("edit_owner_profile", name, phone)

    async def _edit_profile(self, mutation: str, name: str, phone: str) -> FetchResult[UserProfile]:
        name = (name or "").strip()
        phone_digits = re.sub(r"\D", "", phone or "")

        result = await self._writers[mutation].execute({"name": name, "phone": phone_digits})
        if not result.success:
            return result

        try:
            current = await self.session.get_user()
            updated = (current or UserProfile(id="")).model_copy(
                update={"full_name": name, "phone_number": phone.strip()}
            )
            await self.session.set_user(updated)
        except StorageError as e:
            logger.warning("Profile updated on server but not stored locally: %s", e)
            updated = UserProfile(id="", full_name=name, phone_number=phone.strip())
        return FetchResult.ok(updated, message=result.message)

    async def change_password(
        self,
        current_password: str,
        new_password: str,
        confirmation: str,
    ) -> FetchResult[Any]:
        return await self._writers["change_password"].execute(
            {
                "current_password": current_password,
                "new_password": new_password,
                "new_password_confirmation": confirmation,
            }
        )

    # === Session ===

    async def current_user(self) -> UserProfile | None:
        try:
            return await self.session.get_user()
        except StorageError as e:
            logger.warning("Cannot read stored user: %s", e)
            return None

    async def login(self, email: str, password: str) -> FetchResult[UserProfile]:
        """Authenticate and start a fresh session."""
        result = await self._writers["login"].execute({"email": email, "password": password})
        if not result.success:
            return result

        token, user = result.data
        if not user.email:
            user = user.model_copy(update={"email": email})
        try:
            await self.session.establish(token, user)
        except StorageError as e:
            return FetchResult.fail(e)
        return FetchResult.ok(user, message=result.message)

    async def logout(self, owner: bool = False) -> FetchResult[None]:
        """
        End the session.

        Local state is cleared first so the app can move on immediately;
        the server is told afterwards in a detached task whose outcome is
        ignored.
        """
        try:
            token = await self.session.get_token()
            await self.session.clear_session()
        except StorageError as e:
            logger.error("Logout could not clear local session: %s", e)
            return FetchResult.fail(e)

        if token:
            config = self.registry.mutation("owner_logout" if owner else "logout")
            task = asyncio.create_task(self._notify_logout(config.path(), token, config.timeout))
            self._detached.add(task)
            task.add_done_callback(self._detached.discard)
        return FetchResult.ok(None, message="Logged out successfully")

    async def _notify_logout(self, path: str, token: str, timeout: float) -> None:
        try:
            await self.network.request("POST", path, token=token, timeout=timeout)
        except SyncError as e:
            logger.info("Server logout not acknowledged: %s", e.message)
