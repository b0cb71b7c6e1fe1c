"""Cold-launch routing and account banner visibility.

Evaluated after ``init_session()`` has counted the boot.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from promptgate.config.schema import LaunchConfig, PromptConfig
    from promptgate.state.model import EngagementState


class LaunchRoute(str, Enum):
    """Screen shown once the splash finishes."""

    ONBOARDING = "onboarding"
    RETURNING_PROMPT = "returning_prompt"
    FEED = "feed"


def launch_route(state: EngagementState, config: PromptConfig) -> LaunchRoute:
    """Pick the first screen after the splash.

    First launches and unfinished onboarding go to the carousel. Guests in
    the early stage get the returning-user prompt. Everyone else lands on
    the feed.
    """
    if state.is_first_launch or not state.has_completed_onboarding:
        return LaunchRoute.ONBOARDING
    if not state.has_account and state.session_count <= config.early_stage_sessions:
        return LaunchRoute.RETURNING_PROMPT
    return LaunchRoute.FEED


def splash_duration_ms(state: EngagementState, config: LaunchConfig) -> int:
    """Splash length: capped on first launch, short for returning users."""
    if state.is_first_launch:
        return min(config.splash_duration_ms, config.first_launch_splash_cap_ms)
    return config.returning_splash_ms


def should_show_account_banner(state: EngagementState) -> bool:
    """Inline tab-bar banner for guests who finished onboarding."""
    return state.has_completed_onboarding and not state.has_account
