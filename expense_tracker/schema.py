"""
Centralized SQLite Schema Initialization.

Defines the canonical schema for the device-local database and provides a
single entry-point -- :func:`initialize_schema` -- that creates all
required tables idempotently.  A lightweight ``schema_version`` table
tracks the applied version so that future schema changes can be rolled
forward without data loss.

The local store is a plain key/value table.  Each entity family is kept
as one serialized blob under a fixed key (``expenses``, ``incomes``,
``userDetails``), alongside small pieces of session state such as the
selected ``DatabaseType``.

Usage::

    import sqlite3
    from expense_tracker.logger import StructuredLogger
    from expense_tracker.schema import initialize_schema

    conn = sqlite3.connect("expense_tracker_local.db")
    initialize_schema(conn, StructuredLogger(name="schema"))
"""

from __future__ import annotations

import sqlite3

from expense_tracker.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

# ---------------------------------------------------------------------------
# Schema version -- bump this whenever the DDL below changes.
# ---------------------------------------------------------------------------
CURRENT_SCHEMA_VERSION: int = 1

_TABLE_DEFINITIONS: list[str] = [
    # -- single-row version tracker -------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- persistent key/value store -------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS key_value_store (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the ``schema_version`` table if it does not yet exist."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            version INTEGER NOT NULL,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or ``0`` if unset."""
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row is not None else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Upsert the single-row version tracker to *version*.

    Does **not** commit; the caller is responsible for transaction
    management so that version updates are atomic with schema changes.
    """
    conn.execute(
        """
        INSERT INTO schema_version (id, version) VALUES (1, ?)
        ON CONFLICT(id) DO UPDATE SET version = excluded.version,
                                      applied_at = CURRENT_TIMESTAMP
        """,
        (version,),
    )


def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Ensure the local SQLite database matches the current schema version.

    Designed to be called on every application startup.  The upgrade
    (table creation + version bump) runs in a single transaction; on
    failure it is rolled back and the next startup retries.

    Args:
        conn: An open SQLite connection.
        logger: Structured logger for progress messages.
    """
    _ensure_version_table(conn)
    current: int = _get_schema_version(conn)

    if current >= CURRENT_SCHEMA_VERSION:
        logger.info("Schema is up to date (version %d).", current)
        return

    logger.info(
        "Upgrading schema from version %d to %d.", current, CURRENT_SCHEMA_VERSION,
    )

    try:
        for ddl in _TABLE_DEFINITIONS:
            conn.execute(ddl)
        _set_schema_version(conn, CURRENT_SCHEMA_VERSION)
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error(
            "Schema initialisation failed; rolled back to version %d.", current,
        )
        raise

    logger.info("Schema initialised at version %d.", CURRENT_SCHEMA_VERSION)
