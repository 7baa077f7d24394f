"""Tests for the board snapshot cache and its stores."""

import json

import pytest
from omegaconf import OmegaConf

from tilebot.caching import (
    BoardSnapshotCache, create_snapshot_cache, FileStore, MemoryStore, KeyValueStore
)
from tilebot.core.data_models import BoardGrid, HSLColor
from tilebot.core.errors import StorageFailure

RED = HSLColor(0, 100, 50)
BLUE = HSLColor(240, 100, 50)


class _BrokenStore(KeyValueStore):

    def get(self, key):
        raise StorageFailure("disk unplugged")

    def set(self, key, value):
        raise StorageFailure("disk full")

    def delete(self, key):
        raise StorageFailure("read-only")


@pytest.fixture
def grid():
    return BoardGrid.from_cells([[RED, None], [BLUE, RED]])


class TestStores:
    """Test key-value store backends."""

    def test_memory_store(self):
        store = MemoryStore()
        assert store.get("k") is None
        store.set("k", {"a": [1, None]})
        assert store.get("k") == {"a": [1, None]}
        assert store.delete("k")
        assert not store.delete("k")

    def test_memory_store_rejects_unserializable(self):
        with pytest.raises(StorageFailure):
            MemoryStore().set("k", object())

    def test_file_store(self, tmp_path):
        store = FileStore(tmp_path / "cache")
        assert store.get("k") is None
        store.set("k", [1, 2, 3])
        store.set("k", [4])
        assert store.get("k") == [4]
        assert store.get_stats()['writes'] == 2

        # Survives a new store instance on the same directory
        assert FileStore(tmp_path / "cache").get("k") == [4]

        assert store.delete("k")
        assert store.get("k") is None

    def test_file_store_corrupt_file(self, tmp_path):
        store = FileStore(tmp_path)
        store.set("k", 1)
        path = next(tmp_path.glob("*.json"))
        path.write_text("{not json")
        with pytest.raises(StorageFailure):
            store.get("k")
        assert store.errors == 1

    def test_file_store_foreign_document(self, tmp_path):
        store = FileStore(tmp_path)
        store.set("k", 1)
        path = next(tmp_path.glob("*.json"))
        path.write_text(json.dumps({"key": "other", "value": 2}))
        with pytest.raises(StorageFailure):
            store.get("k")

    def test_file_store_unwritable(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = FileStore(blocker / "cache")
        with pytest.raises(StorageFailure):
            store.set("k", 1)


class TestBoardSnapshotCache:
    """Test snapshot save/load semantics."""

    def test_load_empty(self):
        assert BoardSnapshotCache(MemoryStore()).load() is None

    def test_save_and_load(self, grid):
        cache = BoardSnapshotCache(MemoryStore())
        assert cache.save(grid)
        assert cache.load() == grid
        assert cache.saves == 1

    def test_last_write_wins(self, grid):
        cache = BoardSnapshotCache(MemoryStore())
        other = BoardGrid.from_cells([[None, None], [None, BLUE]])
        cache.save(grid)
        cache.save(other)
        assert cache.load() == other

    def test_single_key(self, grid):
        store = MemoryStore()
        BoardSnapshotCache(store).save(grid)
        assert store.get("lastMatrix")['width'] == 2

    def test_file_backed_snapshot(self, tmp_path, grid):
        BoardSnapshotCache(FileStore(tmp_path)).save(grid)
        assert BoardSnapshotCache(FileStore(tmp_path)).load() == grid

    def test_storage_failures_are_not_raised(self, grid):
        cache = BoardSnapshotCache(_BrokenStore())
        assert cache.save(grid) is False
        assert cache.load() is None
        assert cache.clear() is False
        assert cache.failures == 3

    def test_malformed_snapshot(self):
        store = MemoryStore()
        store.set("lastMatrix", {"width": 1})
        cache = BoardSnapshotCache(store)
        assert cache.load() is None
        assert cache.failures == 1

    def test_clear(self, grid):
        cache = BoardSnapshotCache(MemoryStore())
        cache.save(grid)
        assert cache.clear()
        assert cache.load() is None


class TestCreateSnapshotCache:
    """Test the factory."""

    def test_default(self):
        cache = create_snapshot_cache()
        assert isinstance(cache.store, MemoryStore)

    def test_disabled(self):
        assert create_snapshot_cache(OmegaConf.create({'enabled': False})) is None

    def test_file_store_from_config(self, tmp_path):
        config = OmegaConf.create({'enabled': True, 'directory': str(tmp_path), 'key': 'board'})
        cache = create_snapshot_cache(config)
        assert isinstance(cache.store, FileStore)
        assert cache.key == 'board'
