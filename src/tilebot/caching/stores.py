"""Key-value stores backing the board snapshot cache."""

import hashlib
import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

from tilebot.core.errors import StorageFailure

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Durable key-value persistence for JSON-serializable values."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value or None.

        Raises:
            StorageFailure: If the value exists but cannot be read
        """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value, overwriting any previous one.

        Raises:
            StorageFailure: If the write fails
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if something was deleted."""


class MemoryStore(KeyValueStore):
    """In-process store; values are kept as JSON text so they round-trip like files."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageFailure(f"Value for key '{key}' is not serializable: {e}")

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class FileStore(KeyValueStore):
    """File-based store, one JSON document per key."""

    def __init__(self, directory: Union[str, Path] = ".cache/tilebot"):
        """Initialize file store.

        Args:
            directory: Directory to store value files in
        """
        self.directory = Path(directory)

        # Statistics
        self.reads = 0
        self.writes = 0
        self.errors = 0

        logger.info(f"File store initialized: {self.directory}")

    def _get_path(self, key: str) -> Path:
        # Hash key to create safe filename
        key_hash = hashlib.sha256(key.encode()).hexdigest()[:16]
        return self.directory / f"{key_hash}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._get_path(key)
        if not path.exists():
            return None

        try:
            with open(path, 'r') as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            self.errors += 1
            raise StorageFailure(f"Failed to read key '{key}' from {path}: {e}")

        if not isinstance(document, dict) or document.get('key') != key or 'value' not in document:
            self.errors += 1
            raise StorageFailure(f"Malformed store file {path}")

        self.reads += 1
        logger.debug(f"File store read: {key}")
        return document['value']

    def set(self, key: str, value: Any) -> None:
        path = self._get_path(key)
        document = {
            'key': key,
            'saved_at': time.time(),
            'value': value,
        }

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file and rename so readers never see a partial value
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix='.tmp')
            try:
                with os.fdopen(fd, 'w') as f:
                    json.dump(document, f)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            self.errors += 1
            raise StorageFailure(f"Failed to write key '{key}' to {path}: {e}")

        self.writes += 1
        logger.debug(f"File store write: {key}")

    def delete(self, key: str) -> bool:
        path = self._get_path(key)
        try:
            if path.exists():
                path.unlink()
                logger.debug(f"File store delete: {key}")
                return True
            return False
        except OSError as e:
            self.errors += 1
            raise StorageFailure(f"Failed to delete key '{key}': {e}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'directory': str(self.directory),
            'reads': self.reads,
            'writes': self.writes,
            'errors': self.errors,
        }
