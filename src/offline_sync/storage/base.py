"""Durable key-value slot interface and the simple implementations."""

import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from offline_sync.exceptions import PersistenceError


@runtime_checkable
class DurableStore(Protocol):
    """A durable slot that holds one opaque blob per key.

    Every save replaces the whole value; there is no incremental update.
    """

    def load(self, key: str) -> str | None:
        """Return the stored blob, or None if nothing was saved yet."""
        ...

    def save(self, key: str, blob: str) -> None:
        """Replace the stored blob.

        Raises:
            PersistenceError: If the write fails
        """
        ...


class MemoryStore:
    """Process-local store, used for tests and embedding without a disk."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self._data.get(key)

    def save(self, key: str, blob: str) -> None:
        self._data[key] = blob


class FileStore:
    """Stores each key as ``<directory>/<key>.json``.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a crash mid-write never leaves a truncated
    queue behind.
    """

    def __init__(self, directory: Path) -> None:
        """Initialize the file store.

        Args:
            directory: Directory holding the blobs; created if missing
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """Return the file backing a key."""
        return self.directory / f"{key}.json"

    def load(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def save(self, key: str, blob: str) -> None:
        path = self.path_for(key)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write {path}: {e}") from e
