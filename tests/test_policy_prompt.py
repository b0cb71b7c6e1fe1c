"""Tests for the sign-up prompt policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from promptgate.clock import MS_PER_DAY
from promptgate.config.schema import PromptConfig
from promptgate.policy import (
    GuestStage,
    PromptRule,
    PromptVariant,
    evaluate_prompt,
    guest_stage,
    prompt_variant,
    should_show_prompt,
)
from promptgate.state import EngagementState

if TYPE_CHECKING:
    from collections.abc import Callable

NOW = 1_768_059_000_000


class TestAccountRule:
    @pytest.mark.parametrize(
        "fields",
        [
            {},
            {"is_first_launch": True, "session_count": 1},
            {"session_count": 3},
            {"session_count": 9, "high_intent_actions": 50},
            {"prompt_count": 0, "last_prompt_timestamp": None},
        ],
    )
    def test_account_holders_are_never_prompted(
        self,
        make_state: Callable[..., EngagementState],
        prompt_config: PromptConfig,
        fields: dict[str, object],
    ) -> None:
        state = make_state(has_account=True, **fields)
        assert should_show_prompt(state, prompt_config, NOW) is False
        assert evaluate_prompt(state, prompt_config, NOW).rule == PromptRule.ACCOUNT


class TestCeilingRule:
    @pytest.mark.parametrize("prompt_count", [10, 11, 50])
    def test_ceiling_suppresses_every_stage(
        self,
        make_state: Callable[..., EngagementState],
        prompt_config: PromptConfig,
        prompt_count: int,
    ) -> None:
        for session_count in (1, 2, 4, 5, 20):
            state = make_state(
                is_first_launch=session_count == 1,
                session_count=session_count,
                prompt_count=prompt_count,
                high_intent_actions=100,
            )
            decision = evaluate_prompt(state, prompt_config, NOW)
            assert decision.show is False
            assert decision.rule == PromptRule.CEILING

    def test_one_below_ceiling_still_prompts_in_early_stage(
        self,
        make_state: Callable[..., EngagementState],
        prompt_config: PromptConfig,
    ) -> None:
        state = make_state(session_count=3, prompt_count=9)
        assert should_show_prompt(state, prompt_config, NOW) is True

    def test_custom_ceiling(self, make_state: Callable[..., EngagementState]) -> None:
        config = PromptConfig(max_prompt_count=2)
        assert should_show_prompt(make_state(session_count=3, prompt_count=1), config, NOW)
        assert not should_show_prompt(make_state(session_count=3, prompt_count=2), config, NOW)


class TestFirstLaunchRule:
    def test_first_session_without_onboarding_does_not_prompt(
        self, prompt_config: PromptConfig
    ) -> None:
        state = EngagementState(
            is_first_launch=True, session_count=1, has_completed_onboarding=False
        )
        assert should_show_prompt(state, prompt_config, NOW) is False

    def test_first_session_after_onboarding_prompts(self, prompt_config: PromptConfig) -> None:
        state = EngagementState(
            is_first_launch=True, session_count=1, has_completed_onboarding=True
        )
        decision = evaluate_prompt(state, prompt_config, NOW)
        assert decision.show is True
        assert decision.rule == PromptRule.FIRST_LAUNCH

    def test_session_one_after_reload_does_not_prompt(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        # Reloaded in the same session: is_first_launch re-derived as False
        state = make_state(is_first_launch=False, session_count=1)
        assert should_show_prompt(state, prompt_config, NOW) is False


class TestEarlyStageRule:
    @pytest.mark.parametrize("session_count", [2, 3, 4])
    def test_early_sessions_prompt_unconditionally(
        self,
        make_state: Callable[..., EngagementState],
        prompt_config: PromptConfig,
        session_count: int,
    ) -> None:
        for last_prompt in (None, NOW, NOW - 1000, NOW - 30 * MS_PER_DAY):
            state = make_state(
                session_count=session_count,
                prompt_count=3,
                last_prompt_timestamp=last_prompt,
            )
            decision = evaluate_prompt(state, prompt_config, NOW)
            assert decision.show is True
            assert decision.rule == PromptRule.EARLY_STAGE

    def test_early_stage_ignores_onboarding_flag(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        state = make_state(session_count=2, has_completed_onboarding=False)
        assert should_show_prompt(state, prompt_config, NOW) is True

    def test_early_stage_bound_is_configurable(
        self, make_state: Callable[..., EngagementState]
    ) -> None:
        config = PromptConfig(early_stage_sessions=6, reduced_frequency_session_start=7)
        assert should_show_prompt(make_state(session_count=6), config, NOW) is True
        assert should_show_prompt(make_state(session_count=7), config, NOW) is False


class TestReducedFrequencyRule:
    def test_below_threshold_does_not_prompt(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        state = make_state(session_count=5, high_intent_actions=4)
        decision = evaluate_prompt(state, prompt_config, NOW)
        assert decision.show is False
        assert decision.rule == PromptRule.REDUCED_FREQUENCY

    def test_reaching_threshold_flips_to_eligible(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        below = make_state(session_count=8, high_intent_actions=4)
        at = make_state(session_count=8, high_intent_actions=5)
        assert should_show_prompt(below, prompt_config, NOW) is False
        assert should_show_prompt(at, prompt_config, NOW) is True

    def test_never_prompted_prompts(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        state = make_state(session_count=5, high_intent_actions=5, last_prompt_timestamp=None)
        assert should_show_prompt(state, prompt_config, NOW) is True

    def test_recent_prompt_blocks(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        state = make_state(
            session_count=6,
            high_intent_actions=5,
            last_prompt_timestamp=NOW - int(1.9 * MS_PER_DAY),
        )
        assert should_show_prompt(state, prompt_config, NOW) is False

    def test_gap_exactly_at_minimum_prompts(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        state = make_state(
            session_count=6,
            high_intent_actions=5,
            last_prompt_timestamp=NOW - 2 * MS_PER_DAY,
        )
        assert should_show_prompt(state, prompt_config, NOW) is True

    def test_fractional_days_are_not_truncated(
        self, make_state: Callable[..., EngagementState]
    ) -> None:
        config = PromptConfig(reduced_frequency_days=1)
        state = make_state(
            session_count=6,
            high_intent_actions=5,
            last_prompt_timestamp=NOW - int(1.5 * MS_PER_DAY),
        )
        assert should_show_prompt(state, config, NOW) is True

    def test_fractional_minimum(self, make_state: Callable[..., EngagementState]) -> None:
        config = PromptConfig(reduced_frequency_days=1.5)
        state = make_state(
            session_count=6,
            high_intent_actions=5,
            last_prompt_timestamp=NOW - int(1.2 * MS_PER_DAY),
        )
        assert should_show_prompt(state, config, NOW) is False

    @pytest.mark.parametrize("max_prompts_per_day", [1, 4])
    def test_sub_day_gap_follows_reduced_frequency_days(
        self, make_state: Callable[..., EngagementState], max_prompts_per_day: int
    ) -> None:
        config = PromptConfig(
            reduced_frequency_days=0.5, max_prompts_per_day=max_prompts_per_day
        )
        state = make_state(
            session_count=6,
            high_intent_actions=5,
            last_prompt_timestamp=NOW - int(0.75 * MS_PER_DAY),
        )
        assert should_show_prompt(state, config, NOW) is True

        recent = state.model_copy(
            update={"last_prompt_timestamp": NOW - int(0.25 * MS_PER_DAY)}
        )
        assert should_show_prompt(recent, config, NOW) is False

    def test_high_intent_counter_is_not_consumed_by_prompting(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        state = make_state(
            session_count=12,
            high_intent_actions=5,
            prompt_count=5,
            last_prompt_timestamp=NOW - 3 * MS_PER_DAY,
        )
        assert should_show_prompt(state, prompt_config, NOW) is True


class TestDefaultRule:
    def test_gap_between_stages_does_not_prompt(
        self, make_state: Callable[..., EngagementState]
    ) -> None:
        config = PromptConfig(early_stage_sessions=3, reduced_frequency_session_start=6)
        state = make_state(session_count=4, high_intent_actions=100)
        decision = evaluate_prompt(state, config, NOW)
        assert decision.show is False
        assert decision.rule == PromptRule.DEFAULT

    def test_fresh_state_does_not_prompt(self, prompt_config: PromptConfig) -> None:
        assert should_show_prompt(EngagementState(), prompt_config, NOW) is False


class TestPromptVariant:
    @pytest.mark.parametrize("prompt_count", [0, 1])
    def test_half_sheet_for_first_two_prompts(
        self, make_state: Callable[..., EngagementState], prompt_count: int
    ) -> None:
        for fields in ({}, {"has_account": True}, {"session_count": 9}):
            state = make_state(prompt_count=prompt_count, **fields)
            assert prompt_variant(state) == PromptVariant.HALF_SHEET

    @pytest.mark.parametrize("prompt_count", [2, 3, 10, 99])
    def test_full_screen_after_two_prompts(
        self, make_state: Callable[..., EngagementState], prompt_count: int
    ) -> None:
        for fields in ({}, {"has_account": True}, {"is_first_launch": True}):
            state = make_state(prompt_count=prompt_count, **fields)
            assert prompt_variant(state) == PromptVariant.FULL_SCREEN

    def test_variant_never_downgrades(self, make_state: Callable[..., EngagementState]) -> None:
        variants = [prompt_variant(make_state(prompt_count=n)) for n in range(12)]
        first_full = variants.index(PromptVariant.FULL_SCREEN)
        assert all(v == PromptVariant.FULL_SCREEN for v in variants[first_full:])

    def test_variant_threshold_is_configurable(
        self, make_state: Callable[..., EngagementState]
    ) -> None:
        config = PromptConfig(full_screen_after_prompts=4)
        assert prompt_variant(make_state(prompt_count=3), config) == PromptVariant.HALF_SHEET
        assert prompt_variant(make_state(prompt_count=4), config) == PromptVariant.FULL_SCREEN

    def test_decision_carries_variant(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        decision = evaluate_prompt(make_state(session_count=3, prompt_count=2), prompt_config, NOW)
        assert decision.variant == PromptVariant.FULL_SCREEN


class TestGuestStage:
    def test_stages(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        assert guest_stage(make_state(), prompt_config) == GuestStage.NEVER_PROMPTED
        assert (
            guest_stage(make_state(prompt_count=3), prompt_config)
            == GuestStage.PROMPTED_BELOW_CEILING
        )
        assert (
            guest_stage(make_state(prompt_count=10), prompt_config)
            == GuestStage.PROMPTED_AT_CEILING
        )
        assert (
            guest_stage(make_state(prompt_count=10, has_account=True), prompt_config)
            == GuestStage.HAS_ACCOUNT
        )


class TestSerializationRoundTrip:
    def test_decisions_survive_round_trip(
        self, make_state: Callable[..., EngagementState], prompt_config: PromptConfig
    ) -> None:
        states = [
            EngagementState(),
            EngagementState(is_first_launch=True, session_count=1, has_completed_onboarding=True),
            make_state(session_count=3, prompt_count=1),
            make_state(session_count=7, high_intent_actions=6, last_prompt_timestamp=NOW - 1),
            make_state(session_count=7, high_intent_actions=6, prompt_count=10),
            make_state(has_account=True, display_name="Ada", email="ada@example.com"),
        ]
        for state in states:
            restored = EngagementState.from_json(state.to_json())
            assert should_show_prompt(restored, prompt_config, NOW) == should_show_prompt(
                state, prompt_config, NOW
            )
            assert prompt_variant(restored) == prompt_variant(state)
