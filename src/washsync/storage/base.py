"""
Base interface for persisted key-value storage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """
    Abstract base class for persisted storage backends.

    Values are opaque byte strings keyed by name. Each call is durable on
    its own; there is no multi-key atomicity. Implementations raise
    ``StorageError`` for any backend failure.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (open files, create tables, etc.)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored value, or None if the key was never set."""
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List every stored key."""
        pass

    # Bulk operations
    async def remove_many(self, keys: list[str] | tuple[str, ...]) -> None:
        """Remove several keys. Default implementation calls remove() in a loop."""
        for key in keys:
            await self.remove(key)
