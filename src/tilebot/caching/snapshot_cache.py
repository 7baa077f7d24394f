"""Persistence of the last extracted board grid."""

import logging
from typing import Any, Dict, Optional

from omegaconf import DictConfig

from tilebot.core.data_models import BoardGrid
from tilebot.core.errors import StorageFailure
from .stores import KeyValueStore, MemoryStore, FileStore

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "lastMatrix"


class BoardSnapshotCache:
    """Last-write-wins snapshot of one grid under a single key.

    The snapshot is diagnostic only: storage failures are logged and counted,
    never raised to the caller.
    """

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_SNAPSHOT_KEY):
        self.store = store
        self.key = key
        self.saves = 0
        self.failures = 0

    def save(self, grid: BoardGrid) -> bool:
        """Serialize ``grid`` over any previous snapshot.

        Returns:
            True if the snapshot was written
        """
        try:
            self.store.set(self.key, grid.to_dict())
        except StorageFailure as e:
            self.failures += 1
            logger.warning(f"Snapshot save failed: {e}")
            return False

        self.saves += 1
        logger.debug(f"Snapshot saved under '{self.key}' ({grid!r})")
        return True

    def load(self) -> Optional[BoardGrid]:
        """Return the last saved grid, or None if absent or unreadable."""
        try:
            payload = self.store.get(self.key)
        except StorageFailure as e:
            self.failures += 1
            logger.warning(f"Snapshot load failed: {e}")
            return None

        if payload is None:
            return None

        try:
            return BoardGrid.from_dict(payload)
        except (KeyError, TypeError, ValueError, AssertionError) as e:
            self.failures += 1
            logger.warning(f"Snapshot under '{self.key}' is malformed: {e}")
            return None

    def clear(self) -> bool:
        try:
            return self.store.delete(self.key)
        except StorageFailure as e:
            self.failures += 1
            logger.warning(f"Snapshot clear failed: {e}")
            return False

    def get_stats(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'saves': self.saves,
            'failures': self.failures,
        }


def create_snapshot_cache(config: Optional[DictConfig] = None) -> Optional[BoardSnapshotCache]:
    """Factory function to create the snapshot cache from the ``cache`` config section.

    Returns:
        Configured cache, or None when caching is disabled
    """
    if config is None:
        return BoardSnapshotCache(MemoryStore())

    if not config.get('enabled', True):
        logger.info("Snapshot cache disabled")
        return None

    directory = config.get('directory')
    store: KeyValueStore = FileStore(directory) if directory else MemoryStore()
    return BoardSnapshotCache(store, key=config.get('key', DEFAULT_SNAPSHOT_KEY))
