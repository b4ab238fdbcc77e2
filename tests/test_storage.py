"""Tests for session storage backends."""
import pytest

from thinkchat.errors import PersistenceWriteError
from thinkchat.sessions import InMemorySessionStorage, SessionStore, create_session_storage
from thinkchat.sessions.json_file import JsonFileSessionStorage
from thinkchat.sessions.sqlite import SQLiteSessionStorage


@pytest.fixture(params=["memory", "json", "sqlite"])
async def backend(request, tmp_path):
    """Each storage backend, connected."""
    if request.param == "memory":
        storage = create_session_storage("memory")
    elif request.param == "json":
        storage = create_session_storage("json", path=tmp_path / "data")
    else:
        storage = create_session_storage("sqlite", path=tmp_path / "data" / "history.db")
    await storage.connect()
    yield storage
    await storage.disconnect()


class TestSessionStorageContract:
    """Behavior every backend shares."""

    async def test_read_missing_key(self, backend):
        """Test that an unknown key reads as None."""
        assert await backend.read("missing") is None

    async def test_write_then_read(self, backend):
        """Test that the newest write wins."""
        await backend.write("k", "first")
        await backend.write("k", "second")
        assert await backend.read("k") == "second"

    async def test_keys_are_independent(self, backend):
        """Test that writing one key leaves another untouched."""
        await backend.write("a", "1")
        await backend.write("b", "2")
        assert await backend.read("a") == "1"

    async def test_delete(self, backend):
        """Test that a deleted key reads as None and deleting twice is fine."""
        await backend.write("k", "v")
        await backend.delete("k")
        await backend.delete("k")
        assert await backend.read("k") is None

    async def test_unicode_blob(self, backend):
        """Test that non-ASCII text is stored exactly."""
        blob = '[{"title": "Grüße 👋"}]'
        await backend.write("k", blob)
        assert await backend.read("k") == blob


class TestJsonFileStorage:
    """Tests specific to the JSON file backend."""

    async def test_one_file_per_key(self, tmp_path):
        """Test that the blob lands in <dir>/<key>.json."""
        storage = JsonFileSessionStorage(tmp_path)
        await storage.connect()
        await storage.write("gemini_chat_history_v1", "[]")

        path = tmp_path / "gemini_chat_history_v1.json"
        assert path.read_text(encoding="utf-8") == "[]"
        assert storage.path_for("gemini_chat_history_v1") == path

    async def test_unsafe_key_characters_are_replaced(self, tmp_path):
        """Test that a key cannot escape the data directory."""
        storage = JsonFileSessionStorage(tmp_path)
        assert storage.path_for("../evil/key").parent == tmp_path

    async def test_no_temporary_files_left(self, tmp_path):
        """Test that atomic writes clean up after themselves."""
        storage = JsonFileSessionStorage(tmp_path)
        await storage.connect()
        for i in range(3):
            await storage.write("k", str(i))
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    async def test_write_failure_is_persistence_error(self, tmp_path):
        """Test that an unwritable location raises PersistenceWriteError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        storage = JsonFileSessionStorage(blocker / "data")

        with pytest.raises(PersistenceWriteError):
            await storage.write("k", "v")


class TestSQLiteStorage:
    """Tests specific to the SQLite backend."""

    async def test_requires_connect(self, tmp_path):
        """Test that using the backend before connect() fails loudly."""
        storage = SQLiteSessionStorage(tmp_path / "history.db")
        with pytest.raises(RuntimeError):
            await storage.read("k")

    async def test_survives_reconnect(self, tmp_path):
        """Test that data written before disconnect is read back after reconnect."""
        path = tmp_path / "history.db"
        storage = SQLiteSessionStorage(path)
        await storage.connect()
        await storage.write("k", "persisted")
        await storage.disconnect()

        reopened = SQLiteSessionStorage(path)
        await reopened.connect()
        try:
            assert await reopened.read("k") == "persisted"
        finally:
            await reopened.disconnect()


class TestStorageFactory:
    """Tests for create_session_storage."""

    def test_creates_each_backend(self, tmp_path):
        """Test that backend names map to their classes."""
        assert isinstance(create_session_storage("memory"), InMemorySessionStorage)
        assert isinstance(create_session_storage("json", path=tmp_path), JsonFileSessionStorage)
        assert create_session_storage("sqlite", path=tmp_path / "h.db").backend_type == "sqlite"

    def test_unknown_backend(self):
        """Test that an unsupported backend raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_session_storage("redis")


class TestStoreOverFileBackends:
    """End-to-end persistence through a real backend."""

    @pytest.mark.parametrize("backend_name", ["json", "sqlite"])
    async def test_history_survives_restart(self, tmp_path, backend_name):
        """Test that sessions written by one store are restored by the next."""
        path = tmp_path if backend_name == "json" else tmp_path / "history.db"

        store = SessionStore(create_session_storage(backend_name, path=path))
        await store.load()
        session = store.active_session
        store.update_session(session.id, lambda s: s.with_title("Remember me"))
        await store.close()

        restored = SessionStore(create_session_storage(backend_name, path=path))
        await restored.load()
        try:
            assert restored.active_session.id == session.id
            assert restored.active_session.title == "Remember me"
        finally:
            await restored.close()
