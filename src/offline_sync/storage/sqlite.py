"""SQLite-backed durable slot for the request queue."""

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from offline_sync.exceptions import PersistenceError


class SQLiteStore:
    """SQLite-backed key-value store.

    Each key maps to one row; saving replaces the row. The store survives
    process restarts and is safe to share between threads.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._create_table()

    def _create_table(self) -> None:
        """Create the key-value table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def load(self, key: str) -> str | None:
        try:
            with self._lock:
                cursor = self._conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?",
                    (key,),
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read {key!r} from {self.db_path}: {e}") from e
        return row["value"] if row else None

    def save(self, key: str, blob: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, blob, now),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to write {key!r} to {self.db_path}: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
