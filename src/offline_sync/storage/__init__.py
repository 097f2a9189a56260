"""Durable storage adapters for the request queue."""

from offline_sync.config import Settings
from offline_sync.storage.base import DurableStore, FileStore, MemoryStore
from offline_sync.storage.sqlite import SQLiteStore

__all__ = ["DurableStore", "FileStore", "MemoryStore", "SQLiteStore", "create_store"]


def create_store(settings: Settings) -> DurableStore:
    """Build the store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "sqlite":
        return SQLiteStore(settings.data_path / "queue.db")
    return FileStore(settings.data_path)
