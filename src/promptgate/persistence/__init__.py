"""Persistence adapters for the engagement record.

All adapters implement the async PersistenceAdapter protocol
(get/set/remove by string key):
- MemoryPersistence: dict-backed, for tests and ephemeral runs
- JsonFilePersistence: single JSON document on disk
- SQLitePersistence: key-value table with schema migrations

Usage:
    from promptgate.persistence import create_persistence

    storage = create_persistence(config.storage)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from promptgate.config.schema import StorageBackend
from promptgate.paths import JSON_FILENAME, SQLITE_FILENAME
from promptgate.persistence.base import PersistenceAdapter, PersistenceError
from promptgate.persistence.json_file import JsonFilePersistence
from promptgate.persistence.memory import MemoryPersistence
from promptgate.persistence.migrations import CURRENT_SCHEMA_VERSION, migrate_database
from promptgate.persistence.sqlite import SQLitePersistence

if TYPE_CHECKING:
    from promptgate.config.schema import StorageConfig


def create_persistence(storage: StorageConfig) -> PersistenceAdapter:
    """Build the adapter selected by a storage configuration."""
    if storage.backend == StorageBackend.MEMORY:
        return MemoryPersistence()

    directory = storage.get_directory()
    if storage.backend == StorageBackend.JSON:
        return JsonFilePersistence(directory / JSON_FILENAME)
    return SQLitePersistence(directory / SQLITE_FILENAME)


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "JsonFilePersistence",
    "MemoryPersistence",
    "PersistenceAdapter",
    "PersistenceError",
    "SQLitePersistence",
    "create_persistence",
    "migrate_database",
]
