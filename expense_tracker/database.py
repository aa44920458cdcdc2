"""
Storage Connection Layer.

Owns the two physical backends used by the data sources:

- **SQLite (local)**: the device-local key/value store.  Always
  available; holds one serialized blob per entity family plus session
  state.

- **Supabase (cloud)**: the remote document store used while a user is
  signed in.  Optional: when credentials are missing the application
  runs in local-only mode.

This module only manages the raw *connections*; it contains no query
logic.  Data access goes through the data sources and repositories.

Usage (dependency injection at app startup)::

    from expense_tracker.database import ConnectionManager
    from expense_tracker.logger import StructuredLogger

    connections = ConnectionManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=config.LOCAL_DATABASE_PATH,
        logger=StructuredLogger(name="database"),
    )
    await connections.connect_remote()
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Optional

from supabase import AsyncClient, acreate_client

from expense_tracker.logger import StructuredLogger


class ConnectionManager:
    """Manages the local SQLite connection and the async Supabase client.

    The SQLite connection is opened at construction time.  The Supabase
    client needs an event loop, so it is created by :meth:`connect_remote`.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL.  May be empty to run local-only.
    supabase_key:
        The Supabase anonymous key.  May be empty to run local-only.
    sqlite_path:
        Filesystem path for the local SQLite database file, or
        ``":memory:"``.
    logger:
        A ``StructuredLogger`` instance.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        sqlite_path: Path,
        logger: StructuredLogger,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._supabase_url: str = supabase_url
        self._supabase_key: str = supabase_key
        self._write_lock: threading.RLock = threading.RLock()
        self._supabase: Optional[AsyncClient] = None
        self._sqlite_conn: sqlite3.Connection = self._connect_sqlite(sqlite_path)

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Return the initialised SQLite connection."""
        return self._sqlite_conn

    @property
    def write_lock(self) -> threading.RLock:
        """Lock guarding every SQLite write followed by ``commit()``."""
        return self._write_lock

    @property
    def supabase(self) -> AsyncClient:
        """Return the connected Supabase client.

        Raises
        ------
        RuntimeError
            If :meth:`connect_remote` has not succeeded (local-only mode).
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "The application is running in local-only mode."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    async def connect_remote(self) -> Optional[AsyncClient]:
        """Create the async Supabase client when credentials are present.

        Returns the client, or ``None`` when running local-only.
        Credential format errors are logged and leave the manager
        local-only; they are not raised.
        """
        if self._supabase is not None:
            return self._supabase

        if not (self._supabase_url and self._supabase_key):
            self._logger.warning(
                "Supabase credentials not configured; running in local-only mode."
            )
            return None

        try:
            self._supabase = await acreate_client(self._supabase_url, self._supabase_key)
            self._logger.info("Supabase client initialized.")
        except (ValueError, TypeError) as exc:
            self._logger.warning(
                "Supabase credential format error: %s. Running in local-only mode.",
                exc,
            )
        return self._supabase

    def close(self) -> None:
        """Close the local SQLite connection.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        with self._write_lock:
            try:
                self._sqlite_conn.close()
                self._logger.info("SQLite connection closed.")
            except sqlite3.ProgrammingError:
                pass

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _connect_sqlite(self, path: Path) -> sqlite3.Connection:
        """Open (or create) the SQLite database.

        Raises
        ------
        PermissionError
            If the OS denies access to the database file or its directory.
        """
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            self._logger.info("SQLite database opened at %s", path)
            return conn
        except PermissionError as exc:
            msg = (
                f"Cannot open the local database at '{path}'. "
                "The file or its directory may be read-only or locked by "
                "another process."
            )
            self._logger.error(msg)
            raise PermissionError(msg) from exc
