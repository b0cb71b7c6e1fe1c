"""Pydantic schema models for configuration.

This module defines:
- Config: Top-level configuration container
- PromptConfig: Sign-up prompt thresholds consumed by the prompt policy
- LaunchConfig: Splash timing consumed by the launch policy
- StorageConfig: Where the engagement record is persisted

Every threshold is caller-supplied; nothing in the policies is hardcoded.
Field names are snake_case and also accept the camelCase spelling used by
the mobile client (e.g. ``maxPromptCount``).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from promptgate.paths import get_default_state_dir

DEFAULT_STORAGE_KEY = "onboarding_state"


class PromptConfig(BaseModel):
    """Thresholds for the sign-up prompt policy.

    Attributes:
        max_prompt_count: Prompts ever shown before permanent suppression
        early_stage_sessions: Last session of the unconditional early stage
        reduced_frequency_session_start: First session of the reduced-frequency stage
        reduced_frequency_days: Minimum day gap between reduced-frequency prompts
        high_intent_actions_threshold: High-intent actions required in the
            reduced-frequency stage
        max_prompts_per_day: Mobile client setting, accepted and validated but
            not consulted by the prompt policy
        full_screen_after_prompts: Prompt count at which the full-screen
            variant replaces the half-sheet
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    max_prompt_count: Annotated[int, Field(ge=0)] = 10
    early_stage_sessions: Annotated[int, Field(ge=0)] = 4
    reduced_frequency_session_start: Annotated[int, Field(ge=0)] = 5
    reduced_frequency_days: Annotated[float, Field(ge=0)] = 2
    high_intent_actions_threshold: Annotated[int, Field(ge=0)] = 5
    max_prompts_per_day: Annotated[int, Field(ge=1)] = 1
    full_screen_after_prompts: Annotated[int, Field(ge=0)] = 2


class LaunchConfig(BaseModel):
    """Splash timing for cold launches.

    Attributes:
        splash_duration_ms: Configured splash length
        first_launch_splash_cap_ms: Upper bound for the first-launch splash
        returning_splash_ms: Splash length for every later launch
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    splash_duration_ms: Annotated[int, Field(ge=0)] = 3000
    first_launch_splash_cap_ms: Annotated[int, Field(ge=0)] = 2000
    returning_splash_ms: Annotated[int, Field(ge=0)] = 1000


class StorageBackend(str, Enum):
    """Persistence adapter used for the engagement record."""

    SQLITE = "sqlite"
    JSON = "json"
    MEMORY = "memory"


class StorageConfig(BaseModel):
    """State storage configuration.

    Attributes:
        backend: Persistence adapter (default: sqlite)
        directory: State directory path (default: XDG data dir)
                   Uses $XDG_DATA_HOME/promptgate (~/.local/share/promptgate)
        key: Key the serialized record is stored under
    """

    model_config = ConfigDict(extra="forbid")

    backend: StorageBackend = StorageBackend.SQLITE
    directory: str | None = None
    key: Annotated[str, Field(min_length=1, max_length=100)] = DEFAULT_STORAGE_KEY

    def get_directory(self) -> Path:
        """Get the state directory path, expanding ~ if needed."""
        if self.directory:
            return Path(self.directory).expanduser()
        return get_default_state_dir()


class Config(BaseModel):
    """Top-level configuration loaded from YAML.

    Attributes:
        version: Schema version (must be 1)
        prompt: Prompt policy thresholds
        launch: Launch routing and splash timing
        storage: State storage settings
    """

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = 1
    prompt: PromptConfig = Field(default_factory=PromptConfig)
    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @model_validator(mode="after")
    def validate_splash_cap(self) -> Config:
        """Ensure the first-launch cap does not exceed the configured splash."""
        if self.launch.first_launch_splash_cap_ms > self.launch.splash_duration_ms:
            msg = (
                "launch.first_launch_splash_cap_ms must not exceed "
                "launch.splash_duration_ms"
            )
            raise ValueError(msg)
        return self
