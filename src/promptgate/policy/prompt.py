"""Sign-up prompt policy.

Pure functions of an EngagementState and a PromptConfig. Rules are checked
in order and the first one that applies decides:

1. account        - signed-in users are never prompted
2. ceiling        - prompt_count reached max_prompt_count, suppressed for good
3. first_launch   - first session, right after the onboarding carousel
4. early_stage    - sessions 2..early_stage_sessions, every cold open
5. reduced_frequency - later sessions, gated on high-intent actions and a
                    minimum day gap since the last prompt
6. default        - nothing applies, no prompt
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from promptgate.config.schema import PromptConfig

if TYPE_CHECKING:
    from promptgate.state.model import EngagementState


class PromptVariant(str, Enum):
    """Visual register of the sign-up prompt."""

    HALF_SHEET = "half_sheet"
    FULL_SCREEN = "full_screen"


class PromptRule(str, Enum):
    """Rule that decided a prompt evaluation."""

    ACCOUNT = "account"
    CEILING = "ceiling"
    FIRST_LAUNCH = "first_launch"
    EARLY_STAGE = "early_stage"
    REDUCED_FREQUENCY = "reduced_frequency"
    DEFAULT = "default"


class GuestStage(str, Enum):
    """Coarse prompting state of an installation."""

    NEVER_PROMPTED = "guest_never_prompted"
    PROMPTED_BELOW_CEILING = "guest_prompted_below_ceiling"
    PROMPTED_AT_CEILING = "guest_prompted_at_ceiling"
    HAS_ACCOUNT = "has_account"


class PromptDecision(BaseModel):
    """Result of a prompt evaluation."""

    model_config = ConfigDict(frozen=True)

    show: bool = Field(..., description="Whether a prompt may be shown now")
    rule: PromptRule = Field(..., description="Rule that decided")
    reason: str = Field(..., description="Human-readable explanation")
    variant: PromptVariant = Field(..., description="Register the prompt would use")


def evaluate_prompt(
    state: EngagementState,
    config: PromptConfig,
    now: int,
) -> PromptDecision:
    """Decide whether a sign-up prompt should appear now.

    Args:
        state: Current engagement record
        config: Prompt thresholds
        now: Current time as epoch milliseconds

    Returns:
        PromptDecision with the deciding rule and the variant
    """
    show, rule, reason = _decide(state, config, now)
    return PromptDecision(
        show=show,
        rule=rule,
        reason=reason,
        variant=prompt_variant(state, config),
    )


def _decide(  # noqa: PLR0911
    state: EngagementState,
    config: PromptConfig,
    now: int,
) -> tuple[bool, PromptRule, str]:
    if state.has_account:
        return False, PromptRule.ACCOUNT, "user has an account"

    if state.prompt_count >= config.max_prompt_count:
        return (
            False,
            PromptRule.CEILING,
            f"prompt ceiling reached ({state.prompt_count}/{config.max_prompt_count})",
        )

    if state.is_first_launch and state.has_completed_onboarding:
        return True, PromptRule.FIRST_LAUNCH, "first launch after onboarding"

    if 2 <= state.session_count <= config.early_stage_sessions:
        return (
            True,
            PromptRule.EARLY_STAGE,
            f"early-stage session {state.session_count}/{config.early_stage_sessions}",
        )

    if state.session_count >= config.reduced_frequency_session_start:
        if state.high_intent_actions < config.high_intent_actions_threshold:
            return (
                False,
                PromptRule.REDUCED_FREQUENCY,
                f"high-intent actions below threshold "
                f"({state.high_intent_actions}/{config.high_intent_actions_threshold})",
            )

        days = state.days_since_last_prompt(now)
        if days is None:
            return True, PromptRule.REDUCED_FREQUENCY, "high intent, never prompted"

        min_gap = config.reduced_frequency_days
        if days >= min_gap:
            return (
                True,
                PromptRule.REDUCED_FREQUENCY,
                f"high intent, {days:.2f} days since last prompt (min {min_gap:g})",
            )
        return (
            False,
            PromptRule.REDUCED_FREQUENCY,
            f"last prompt {days:.2f} days ago (min {min_gap:g})",
        )

    return False, PromptRule.DEFAULT, f"no rule applies to session {state.session_count}"


def should_show_prompt(
    state: EngagementState,
    config: PromptConfig,
    now: int,
) -> bool:
    """Return True when a sign-up prompt may be shown now.

    Args:
        state: Current engagement record
        config: Prompt thresholds
        now: Current time as epoch milliseconds
    """
    return _decide(state, config, now)[0]


def prompt_variant(
    state: EngagementState,
    config: PromptConfig | None = None,
) -> PromptVariant:
    """Choose the prompt register from the prompt count alone.

    The half-sheet is used until the user has been prompted
    ``full_screen_after_prompts`` times (2 by default), then full-screen.
    """
    threshold = (config or PromptConfig()).full_screen_after_prompts
    if state.prompt_count >= threshold:
        return PromptVariant.FULL_SCREEN
    return PromptVariant.HALF_SHEET


def guest_stage(state: EngagementState, config: PromptConfig) -> GuestStage:
    """Classify the installation into its coarse prompting state."""
    if state.has_account:
        return GuestStage.HAS_ACCOUNT
    if state.prompt_count >= config.max_prompt_count:
        return GuestStage.PROMPTED_AT_CEILING
    if state.prompt_count == 0:
        return GuestStage.NEVER_PROMPTED
    return GuestStage.PROMPTED_BELOW_CEILING
