"""Persistence adapter interface.

The engagement store talks to storage only through this async key-value
protocol. Values are opaque strings (the store writes JSON).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class PersistenceError(Exception):
    """Raised by adapters when a storage operation fails."""

    def __init__(self, operation: str, key: str, message: str) -> None:
        self.operation = operation
        self.key = key
        super().__init__(f"{operation} {key!r} failed: {message}")


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Async key-value storage used by the engagement store."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    async def remove(self, key: str) -> None:
        """Delete key. Removing an absent key is not an error."""
        ...
