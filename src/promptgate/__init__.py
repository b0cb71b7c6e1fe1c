"""promptgate - engagement gating engine for guest sign-up prompts.

Decides, across repeated cold launches of an installation, whether a guest
should see a sign-up prompt and in which visual register.

Usage:
    from promptgate import EngagementStore, PromptConfig, should_show_prompt
    from promptgate.persistence import MemoryPersistence

    store = EngagementStore(MemoryPersistence())
    await store.load()
    await store.init_session()
    should_show_prompt(store.state, PromptConfig(), now_ms())
"""

from promptgate.auth import AuthProvider, AuthResult, AuthUser
from promptgate.clock import now_ms
from promptgate.config.schema import Config, LaunchConfig, PromptConfig
from promptgate.policy import (
    LaunchRoute,
    PromptVariant,
    launch_route,
    prompt_variant,
    should_show_account_banner,
    should_show_prompt,
)
from promptgate.state import EngagementState, EngagementStore

__version__ = "0.1.0"

__all__ = [
    "AuthProvider",
    "AuthResult",
    "AuthUser",
    "Config",
    "EngagementState",
    "EngagementStore",
    "LaunchConfig",
    "LaunchRoute",
    "PromptConfig",
    "PromptVariant",
    "__version__",
    "launch_route",
    "now_ms",
    "prompt_variant",
    "should_show_account_banner",
    "should_show_prompt",
]
