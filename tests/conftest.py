"""Shared pytest fixtures for promptgate tests.

This module provides common fixtures for:
- Temporary config files
- Fixed clocks for deterministic timestamps
- Persistence adapters and engagement stores
- Engagement state factories
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import structlog
import yaml

from promptgate.clock import FixedClock
from promptgate.config.schema import PromptConfig
from promptgate.persistence import MemoryPersistence, SQLitePersistence
from promptgate.state import EngagementState, EngagementStore

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


# ============================================================================
# Logging
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """Drop any structlog configuration a test (or the CLI) installed."""
    yield
    structlog.reset_defaults()


# ============================================================================
# Time Fixtures
# ============================================================================

# 2026-01-10T15:30:00Z
FROZEN_MS = 1_768_059_000_000


@pytest.fixture
def frozen_ms() -> int:
    """Return a fixed epoch-ms timestamp for deterministic tests."""
    return FROZEN_MS


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to FROZEN_MS; advance it with clock.advance(days=...)."""
    return FixedClock(FROZEN_MS)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory (cleaned up after test)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def prompt_config() -> PromptConfig:
    """Default thresholds: ceiling 10, early stage 2-4, reduced from 5."""
    return PromptConfig()


@pytest.fixture
def sample_config(temp_dir: Path) -> dict[str, Any]:
    """Return a sample configuration dictionary."""
    return {
        "version": 1,
        "prompt": {
            "max_prompt_count": 6,
            "early_stage_sessions": 3,
            "reduced_frequency_session_start": 4,
            "reduced_frequency_days": 1,
            "high_intent_actions_threshold": 3,
        },
        "storage": {
            "backend": "sqlite",
            "directory": str(temp_dir / "state"),
        },
    }


@pytest.fixture
def write_config(temp_dir: Path) -> Callable[..., Path]:
    """Factory fixture to write config files.

    Args:
        config: Configuration dictionary
        filename: Name of the config file (default: config.yaml)

    Returns:
        Path to the written config file
    """

    def _write(config: dict[str, Any], filename: str = "config.yaml") -> Path:
        path = temp_dir / filename
        with path.open("w") as f:
            yaml.safe_dump(config, f)
        return path

    return _write


# ============================================================================
# State Fixtures
# ============================================================================


@pytest.fixture
def make_state() -> Callable[..., EngagementState]:
    """Factory for EngagementState records.

    Defaults describe a returning guest (not first launch, onboarding done).
    """

    def _make(**fields: Any) -> EngagementState:
        values: dict[str, Any] = {
            "is_first_launch": False,
            "has_completed_onboarding": True,
        }
        values.update(fields)
        return EngagementState(**values)

    return _make


@pytest.fixture
def memory_persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def store(memory_persistence: MemoryPersistence, clock: FixedClock) -> EngagementStore:
    """EngagementStore over in-memory persistence with a fixed clock."""
    return EngagementStore(memory_persistence, clock=clock)


@pytest.fixture
def sqlite_persistence(temp_dir: Path) -> Generator[SQLitePersistence, None, None]:
    """Create a SQLitePersistence for testing.

    Yields:
        Initialized adapter (closed after test)
    """
    persistence = SQLitePersistence(temp_dir / "test_state.db")
    yield persistence
    persistence.close()
