"""Session persistence: bearer token and current user profile."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from washsync.cache.resource_cache import ResourceCache
from washsync.schema.records import UserProfile
from washsync.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "user_data"


class Session(BaseModel):
    """Snapshot of the persisted session."""

    token: str | None = None
    user: UserProfile | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


class SessionStore:
    """
    Owns the persisted token and user profile.

    An absent token means "unauthenticated", never an error. Storage
    failures propagate as ``StorageError``. Clearing the session also
    invalidates every session-scoped cache key, so one user's data is
    never served to the next.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        cache: ResourceCache | None = None,
        session_scoped_keys: Iterable[str] = (),
    ):
        self._storage = storage
        self._cache = cache
        self._session_scoped_keys = tuple(session_scoped_keys)

    @property
    def session_scoped_keys(self) -> tuple[str, ...]:
        return self._session_scoped_keys

    async def set_token(self, token: str) -> None:
        await self._storage.set(TOKEN_KEY, token.encode("utf-8"))

    async def get_token(self) -> str | None:
        raw = await self._storage.get(TOKEN_KEY)
        if not raw:
            return None
        try:
            return raw.decode("utf-8") or None
        except UnicodeDecodeError:
            logger.warning("Stored token is not valid UTF-8, treating session as absent")
            return None

    async def set_user(self, user: UserProfile) -> None:
        await self._storage.set(USER_KEY, user.model_dump_json().encode("utf-8"))

    async def get_user(self) -> UserProfile | None:
        raw = await self._storage.get(USER_KEY)
        if not raw:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ModelValidationError as e:
            logger.warning("Ignoring malformed stored user profile: %s", e.error_count())
            return None

    async def get_session(self) -> Session:
        return Session(token=await self.get_token(), user=await self.get_user())

    async def is_logged_in(self) -> bool:
        return await self.get_token() is not None

    async def establish(self, token: str | None, user: UserProfile) -> None:
        """Store a fresh login and drop cached data from any earlier session."""
        if token:
            await self.set_token(token)
        await self.set_user(user)
        await self._invalidate_session_cache()
        logger.info("Session established for user %s", user.id)

    async def clear_session(self) -> None:
        """Remove token and user together, then clear session-scoped caches."""
        await self._storage.remove_many((TOKEN_KEY, USER_KEY))
        await self._invalidate_session_cache()
        logger.info("Session cleared")

    async def _invalidate_session_cache(self) -> None:
        if self._cache is not None:
            await self._cache.invalidate_many(self._session_scoped_keys)
