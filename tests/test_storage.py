"""Tests for storage backends."""


import pytest


class TestDictStore:
    """Tests for in-memory DictStore."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, dict_store):
        """Test basic set and get operations."""
        await dict_store.set("auth_token", b"abc")

        assert await dict_store.get("auth_token") == b"abc"
        assert "auth_token" in dict_store

    @pytest.mark.asyncio
    async def test_get_missing(self, dict_store):
        """Test getting a key that was never set."""
        assert await dict_store.get("nothing") is None

    @pytest.mark.asyncio
    async def test_overwrite(self, dict_store):
        """Test that set replaces the previous value."""
        await dict_store.set("k", b"one")
        await dict_store.set("k", b"two")

        assert await dict_store.get("k") == b"two"
        assert len(dict_store) == 1

    @pytest.mark.asyncio
    async def test_remove_missing_is_not_an_error(self, dict_store):
        """Test removing a key that does not exist."""
        await dict_store.remove("nothing")
        assert len(dict_store) == 0

    @pytest.mark.asyncio
    async def test_remove_many(self, dict_store):
        """Test removing several keys at once."""
        for key in ("a", "b", "c"):
            await dict_store.set(key, b"x")

        await dict_store.remove_many(("a", "c", "missing"))

        assert await dict_store.keys() == ["b"]

    @pytest.mark.asyncio
    async def test_stored_bytes_are_copied(self):
        """Test that mutating the caller's buffer does not change the stored value."""
        from washsync.storage import DictStore

        store = DictStore()
        buffer = bytearray(b"abc")
        await store.set("k", buffer)
        buffer[0] = ord("z")

        assert await store.get("k") == b"abc"


class TestSQLiteStore:
    """Tests for SQLite persistent store."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, sqlite_store):
        """Test basic set and get operations."""
        await sqlite_store.set("cached_bookings", b'{"data": [], "timestamp": 1}')

        assert await sqlite_store.get("cached_bookings") == b'{"data": [], "timestamp": 1}'

    @pytest.mark.asyncio
    async def test_persistence(self, temp_dir):
        """Test that data persists across store instances."""
        from washsync.storage import SQLiteStore

        db_path = temp_dir / "persist_test.sqlite"

        store1 = SQLiteStore(db_path)
        await store1.initialize()
        await store1.set("auth_token", b"tok")
        await store1.close()

        store2 = SQLiteStore(db_path)
        await store2.initialize()
        retrieved = await store2.get("auth_token")
        await store2.close()

        assert retrieved == b"tok"

    @pytest.mark.asyncio
    async def test_upsert(self, sqlite_store):
        """Test that set replaces an existing row."""
        await sqlite_store.set("k", b"one")
        await sqlite_store.set("k", b"two")

        assert await sqlite_store.get("k") == b"two"
        assert await sqlite_store.keys() == ["k"]

    @pytest.mark.asyncio
    async def test_remove_and_remove_many(self, sqlite_store):
        """Test single and bulk removal."""
        for key in ("a", "b", "c", "d"):
            await sqlite_store.set(key, b"x")

        await sqlite_store.remove("a")
        await sqlite_store.remove_many(["b", "c"])

        assert await sqlite_store.keys() == ["d"]

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, temp_dir):
        """Test that initialize creates the data directory."""
        from washsync.storage import SQLiteStore

        store = SQLiteStore(temp_dir / "nested" / "dir" / "state.sqlite")
        await store.initialize()
        await store.close()

        assert (temp_dir / "nested" / "dir" / "state.sqlite").exists()

    @pytest.mark.asyncio
    async def test_uninitialized_store_raises_storage_error(self, temp_dir):
        """Test that using a closed store surfaces a StorageError."""
        from washsync.errors import ErrorKind, StorageError
        from washsync.storage import SQLiteStore

        store = SQLiteStore(temp_dir / "state.sqlite")

        with pytest.raises(StorageError) as exc_info:
            await store.get("auth_token")
        assert exc_info.value.kind is ErrorKind.STORAGE
