"""SQLite persistence adapter.

This module provides a key-value adapter on top of SQLite that handles:
- Database initialization with schema migrations
- Atomic whole-value replacement per key
- File permissions (chmod 600) on database creation

sqlite3 calls are blocking, so each async method runs its query in a worker
thread. The connection is opened with ``check_same_thread=False`` and all
access goes through one lock.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from promptgate.persistence.base import PersistenceError
from promptgate.persistence.migrations import migrate_database

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


class SQLitePersistence:
    """SQLite-based key-value persistence.

    The database file is created with chmod 600 since the engagement record
    holds an email address.

    Args:
        db_path: Path to the SQLite database file

    Example:
        >>> from promptgate.paths import get_default_state_dir
        >>> storage = SQLitePersistence(get_default_state_dir() / "state.db")
        >>> await storage.set("onboarding_state", "{}")
        >>> await storage.get("onboarding_state")
        '{}'
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

        self._ensure_database()

    def _ensure_database(self) -> None:
        """Create the database directory, run migrations, set permissions."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        is_new = not self.db_path.exists()

        conn = self._get_connection()
        migrate_database(conn)

        if is_new and self.db_path.exists():
            try:
                os.chmod(self.db_path, 0o600)  # noqa: PTH101
                logger.debug("Set database permissions to 600: %s", self.db_path)
            except OSError as e:
                logger.warning("Could not set database permissions: %s", e)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for transactional operations.

        Yields:
            The database connection

        Raises:
            Exception: Re-raises any exception after rollback
        """
        with self._lock:
            conn = self._get_connection()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # -------------------------------------------------------------------------
    # Key-value Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self.get_sync, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self.set_sync, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self.remove_sync, key)

    def get_sync(self, key: str) -> str | None:
        """Read a value.

        Raises:
            PersistenceError: If the query fails
        """
        try:
            with self.transaction() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError("get", key, str(e)) from e
        return row["value"] if row is not None else None

    def set_sync(self, key: str, value: str) -> None:
        """Replace a value atomically.

        Raises:
            PersistenceError: If the write fails
        """
        try:
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, datetime('now'))
                    """,
                    (key, value),
                )
        except sqlite3.Error as e:
            raise PersistenceError("set", key, str(e)) from e
        logger.debug("Saved key: %s", key)

    def remove_sync(self, key: str) -> None:
        """Delete a value if present.

        Raises:
            PersistenceError: If the delete fails
        """
        try:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                deleted = cursor.rowcount > 0
        except sqlite3.Error as e:
            raise PersistenceError("remove", key, str(e)) from e
        if deleted:
            logger.debug("Removed key: %s", key)
