"""Versioned schema for the SQLite persistence adapter.

Each entry of ``MIGRATIONS`` upgrades the database by one version. The
applied version numbers are recorded in ``schema_version``; a database with
no such table is version 0.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import sqlite3

logger = logging.getLogger(__name__)

# version -> DDL that brings version - 1 up to it
MIGRATIONS: dict[int, str] = {
    1: """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
    """,
}

CURRENT_SCHEMA_VERSION = max(MIGRATIONS)


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Highest applied migration, or 0 for an empty database."""
    has_table = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        ("schema_version",),
    ).fetchone()
    if not has_table:
        return 0
    (version,) = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version").fetchone()
    return int(version)


def migrate_database(conn: sqlite3.Connection) -> int:
    """Bring the database up to CURRENT_SCHEMA_VERSION.

    Returns:
        Number of migrations applied (0 when already current)

    Raises:
        RuntimeError: The database was written by a newer promptgate
    """
    current = get_schema_version(conn)
    if current > CURRENT_SCHEMA_VERSION:
        msg = (
            f"State database is at schema v{current}, but this promptgate "
            f"only understands up to v{CURRENT_SCHEMA_VERSION}"
        )
        raise RuntimeError(msg)

    pending = range(current + 1, CURRENT_SCHEMA_VERSION + 1)
    for version in pending:
        logger.info("Applying state schema migration v%d", version)
        conn.executescript(MIGRATIONS[version])
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
        conn.commit()
    return len(pending)
