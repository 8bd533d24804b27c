"""
In-memory dictionary store.

Ephemeral storage used for tests and for running without a data directory.
"""

from __future__ import annotations

from washsync.storage.base import KeyValueStore


class DictStore(KeyValueStore):
    """
    In-memory dictionary-based key-value storage.

    Features:
    - O(1) access by key
    - No persistence (ephemeral)
    - Copies bytes on the way in so callers cannot mutate stored values
    """

    def __init__(self, initial: dict[str, bytes] | None = None):
        self._values: dict[str, bytes] = dict(initial or {})

    async def initialize(self) -> None:
        """Nothing to prepare."""

    async def close(self) -> None:
        """Nothing to release."""

    async def get(self, key: str) -> bytes | None:
        return self._values.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._values[key] = bytes(value)

    async def remove(self, key: str) -> None:
        self._values.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values
