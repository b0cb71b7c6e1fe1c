"""In-memory persistence adapter."""

from __future__ import annotations

from promptgate.persistence.base import PersistenceError


class MemoryPersistence:
    """Dict-backed adapter for tests and ephemeral runs.

    Setting ``fail_writes`` (or ``fail_reads``) makes the matching calls raise
    PersistenceError, which is how store failure handling is exercised.

    Example:
        >>> storage = MemoryPersistence()
        >>> await storage.set("onboarding_state", "{}")
        >>> storage.data
        {'onboarding_state': '{}'}
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.fail_writes = False
        self.fail_reads = False
        self.write_count = 0

    async def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise PersistenceError("get", key, "simulated read failure")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceError("set", key, "simulated write failure")
        self.data[key] = value
        self.write_count += 1

    async def remove(self, key: str) -> None:
        if self.fail_writes:
            raise PersistenceError("remove", key, "simulated write failure")
        self.data.pop(key, None)
