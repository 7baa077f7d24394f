"""Caching system for tilebot.

This module persists the last extracted board grid so it survives reload
cycles, on top of a pluggable key-value store.
"""

from .snapshot_cache import BoardSnapshotCache, create_snapshot_cache, DEFAULT_SNAPSHOT_KEY
from .stores import KeyValueStore, MemoryStore, FileStore

__all__ = [
    'BoardSnapshotCache',
    'create_snapshot_cache',
    'DEFAULT_SNAPSHOT_KEY',
    'KeyValueStore',
    'MemoryStore',
    'FileStore'
]
