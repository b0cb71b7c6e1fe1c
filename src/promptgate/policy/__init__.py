"""Gating policies: pure functions of the engagement record.

- Prompt policy: whether a sign-up prompt may appear now, and its variant
- Launch policy: first screen after the splash, splash length, account banner
"""

from promptgate.policy.launch import (
    LaunchRoute,
    launch_route,
    should_show_account_banner,
    splash_duration_ms,
)
from promptgate.policy.prompt import (
    GuestStage,
    PromptDecision,
    PromptRule,
    PromptVariant,
    evaluate_prompt,
    guest_stage,
    prompt_variant,
    should_show_prompt,
)

__all__ = [
    "GuestStage",
    "LaunchRoute",
    "PromptDecision",
    "PromptRule",
    "PromptVariant",
    "evaluate_prompt",
    "guest_stage",
    "launch_route",
    "prompt_variant",
    "should_show_account_banner",
    "should_show_prompt",
    "splash_duration_ms",
]
