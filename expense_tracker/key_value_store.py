"""
Persistent Key/Value Store.

Read/write access to the ``key_value_store`` table in the local SQLite
database.  This is the device-local durability layer: the local data
sources keep one serialized collection per key, and session state
(``DatabaseType``, ``IsSignedIn``, reminder settings) lives beside them.

Constructed once by the composition root and passed explicitly to every
consumer; nothing looks it up globally.

The table is created by :func:`expense_tracker.schema.initialize_schema`::

    CREATE TABLE IF NOT EXISTS key_value_store (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from expense_tracker.database import ConnectionManager
from expense_tracker.logger import StructuredLogger


class KeyValueStore:
    """String values keyed by name, persisted in local SQLite.

    Unlike a preferences cache, failures are not hidden: every
    ``sqlite3.Error`` is logged and re-raised so that callers (the local
    data sources) can surface them.

    Parameters
    ----------
    connections:
        ``ConnectionManager`` with an open SQLite connection.
    logger:
        Structured logger instance.
    """

    def __init__(self, connections: ConnectionManager, logger: StructuredLogger) -> None:
        self._connections = connections
        self._logger = logger

    # ------------------------------------------------------------------
    # Generic key-value access
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """Read a value by key.  Returns ``None`` if not present."""
        try:
            row = self._connections.sqlite.execute(
                "SELECT value FROM key_value_store WHERE key = ?",
                (key,),
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.error("Failed to read key_value_store[%s]: %s", key, exc)
            raise
        return row["value"] if row is not None else None

    def set(self, key: str, value: str) -> None:
        """Upsert a value."""
        try:
            with self._connections.write_lock:
                self._connections.sqlite.execute(
                    """
                    INSERT INTO key_value_store (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value      = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value),
                )
                self._connections.sqlite.commit()
        except sqlite3.Error as exc:
            self._logger.error("Failed to write key_value_store[%s]: %s", key, exc)
            raise
        self._logger.debug("key_value_store[%s] updated.", key)

    def remove(self, key: str) -> None:
        """Delete a key.  Removing an absent key is a no-op."""
        try:
            with self._connections.write_lock:
                self._connections.sqlite.execute(
                    "DELETE FROM key_value_store WHERE key = ?", (key,),
                )
                self._connections.sqlite.commit()
        except sqlite3.Error as exc:
            self._logger.error("Failed to remove key_value_store[%s]: %s", key, exc)
            raise

    # ------------------------------------------------------------------
    # Typed convenience
    # ------------------------------------------------------------------

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        return value == "true"

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, "true" if value else "false")
