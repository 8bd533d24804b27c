"""Persisted key-value storage backends."""

from washsync.storage.base import KeyValueStore
from washsync.storage.dict_store import DictStore
from washsync.storage.sqlite_store import SQLiteStore

__all__ = [
    "KeyValueStore",
    "DictStore",
    "SQLiteStore",
]
