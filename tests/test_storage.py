"""Tests for forgeguard.storage — pluggable persistence backends."""

import threading

import pytest

from forgeguard.storage import FileBackend, MemoryBackend, SQLiteBackend, StorageBackend


# ─── Fixtures ──────────────────────────────────────────────────────

@pytest.fixture
def sqlite_backend(tmp_path):
    db = SQLiteBackend(str(tmp_path / "test.db"))
    yield db
    db.close()


@pytest.fixture
def file_backend(tmp_path):
    return FileBackend(str(tmp_path / "store"))


@pytest.fixture(params=["memory", "file", "sqlite"])
def backend(request, tmp_path):
    if request.param == "memory":
        yield MemoryBackend()
    elif request.param == "file":
        yield FileBackend(str(tmp_path / "store"))
    else:
        db = SQLiteBackend(str(tmp_path / "test.db"))
        yield db
        db.close()


# ─── Contract shared by every backend ──────────────────────────────

class TestBackendContract:
    def test_is_storage_backend(self, backend):
        assert isinstance(backend, StorageBackend)

    def test_missing_key(self, backend):
        assert backend.get("nothing_here") is None

    def test_set_get(self, backend):
        backend.set("rate", '{"minuteTimestamps": [1]}')
        assert backend.get("rate") == '{"minuteTimestamps": [1]}'

    def test_overwrite(self, backend):
        backend.set("rate", "one")
        backend.set("rate", "two")
        assert backend.get("rate") == "two"

    def test_delete(self, backend):
        backend.set("rate", "x")
        assert backend.delete("rate") is True
        assert backend.get("rate") is None
        assert backend.delete("rate") is False

    def test_keys_are_independent(self, backend):
        backend.set("a", "1")
        backend.set("b", "2")
        backend.delete("a")
        assert backend.get("b") == "2"

    def test_unicode_value(self, backend):
        backend.set("k", "résumé ✓")
        assert backend.get("k") == "résumé ✓"


# ─── File Backend ──────────────────────────────────────────────────

class TestFileBackend:
    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir"
        FileBackend(str(target))
        assert target.is_dir()

    def test_one_file_per_key(self, file_backend, tmp_path):
        file_backend.set("freelanceforge_rate_limits", "{}")
        assert (tmp_path / "store" / "freelanceforge_rate_limits.json").read_text() == "{}"

    def test_no_temp_files_left(self, file_backend, tmp_path):
        for i in range(5):
            file_backend.set("k", str(i))
        assert sorted(p.name for p in (tmp_path / "store").iterdir()) == ["k.json"]

    def test_survives_reopen(self, tmp_path):
        FileBackend(str(tmp_path / "store")).set("k", "persisted")
        assert FileBackend(str(tmp_path / "store")).get("k") == "persisted"

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden", "sp ace"])
    def test_rejects_unsafe_keys(self, file_backend, key):
        with pytest.raises(ValueError):
            file_backend.set(key, "x")

    def test_concurrent_writes(self, file_backend):
        def writer(n):
            for i in range(20):
                file_backend.set("shared", f"{n}-{i}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert file_backend.get("shared").endswith("-19")


# ─── SQLite Backend ────────────────────────────────────────────────

class TestSQLiteBackend:
    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / "state.db")
        db = SQLiteBackend(path)
        db.set("k", "persisted")
        db.close()

        db = SQLiteBackend(path)
        assert db.get("k") == "persisted"
        db.close()

    def test_arbitrary_keys(self, sqlite_backend):
        sqlite_backend.set("user/with spaces", "ok")
        assert sqlite_backend.get("user/with spaces") == "ok"
