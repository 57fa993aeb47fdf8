"""
Provides a simple, persistent key-value storage layer using SQLite.

Values are serialized to JSON, so any structure built from dicts, lists,
strings, numbers and booleans can be stored under a string key.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict

from ..core.exceptions import StorageError

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Manages a persistent key-value store backed by a SQLite database.
    """

    def __init__(self, db_path: Path):
        """
        Opens (and if needed creates) the database and its table.

        Args:
            db_path (Path): Path to the SQLite database file. The directory
                            will be created if it does not exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = None

        try:
            self._conn = sqlite3.connect(self.db_path, isolation_level="EXCLUSIVE")
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._create_table()
        except sqlite3.Error as e:
            logger.error("Database connection failed: %s", e, extra={"event": "storage.open_failed"})
            raise StorageError(f"cannot open state database {self.db_path}: {e}") from e

    def _create_table(self):
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS key_value_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def set(self, key: str, value: Any):
        """Saves or updates a single value."""
        self.set_many({key: value})

    def set_many(self, items: Dict[str, Any]):
        """
        Saves several values in one transaction; either all are written or none.
        """
        try:
            rows = [(key, json.dumps(value)) for key, value in items.items()]
            with self._conn:
                self._conn.executemany(
                    """
                    INSERT INTO key_value_store (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    rows,
                )
        except (sqlite3.Error, TypeError) as e:
            # TypeError for objects that can't be JSON serialized
            logger.error("Failed to store keys %s: %s", sorted(items), e)
            raise StorageError(f"failed to write state: {e}") from e

    def get(self, key: str, default: Any | None = None) -> Any:
        """
        Retrieves a value by key.

        Returns:
            The deserialized value, or ``default`` if the key is not present.
        """
        try:
            cursor = self._conn.cursor()
            cursor.execute("SELECT value FROM key_value_store WHERE key = ?", (key,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"failed to read key '{key}': {e}") from e
        if row:
            return json.loads(row[0])
        return default

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
