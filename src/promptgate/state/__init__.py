"""State management module for promptgate.

This module provides the engagement record and its single writer:
- EngagementState: onboarding, account and prompt counters of one installation
- EngagementStore: transitions with write-through persistence

Usage:
    from promptgate.state import EngagementStore
    from promptgate.persistence import SQLitePersistence

    store = EngagementStore(SQLitePersistence(db_path))
    await store.load()
    await store.init_session()
"""

from promptgate.state.model import DEFAULT_STATE, EngagementState
from promptgate.state.store import EngagementStore

__all__ = [
    "DEFAULT_STATE",
    "EngagementState",
    "EngagementStore",
]
