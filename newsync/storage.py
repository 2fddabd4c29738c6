"""
On-device key-value storage.

Provides:
- KeyValueStore: async get/set/remove over string values
- MemoryKeyValueStore: process-local store (tests, ephemeral clients)
- FileKeyValueStore: one JSON file per key under a directory
"""

import asyncio
import hashlib
import json
from abc import ABC, abstractmethod
from pathlib import Path

from .exceptions import FallbackIOError


class KeyValueStore(ABC):
    """Abstract base class for on-device key-value backends."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get a value, or None if the key is absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value under key."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        pass


class MemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store. Contents are lost when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """Persistent store writing each key to its own file."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _key_to_path(self, key: str) -> Path:
        """Convert key to file path."""
        hashed = hashlib.sha256(key.encode()).hexdigest()[:16]
        return self.directory / f"{hashed}.json"

    def _read(self, key: str) -> str | None:
        path = self._key_to_path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except OSError as e:
            raise FallbackIOError(f"Failed to read {key}: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError):
            # Corrupted file, treat as absent
            path.unlink(missing_ok=True)
            return None

        if not isinstance(data, dict):
            path.unlink(missing_ok=True)
            return None

        # Verify key matches (handle hash collisions)
        if data.get("key") != key:
            return None
        return data.get("value")

    def _write(self, key: str, value: str) -> None:
        path = self._key_to_path(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            tmp_path.write_text(json.dumps({"key": key, "value": value}))
            tmp_path.replace(path)
        except OSError as e:
            raise FallbackIOError(f"Failed to write {key}: {e}") from e

    def _delete(self, key: str) -> None:
        try:
            self._key_to_path(key).unlink(missing_ok=True)
        except OSError as e:
            raise FallbackIOError(f"Failed to remove {key}: {e}") from e

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)
