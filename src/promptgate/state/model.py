"""Engagement state record.

One record exists per installation. It is serialized as a single JSON
object with camelCase keys, matching what the mobile client stores under
``onboarding_state``.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from promptgate.clock import MS_PER_DAY


class EngagementState(BaseModel):
    """Onboarding and account status of one installation.

    Attributes:
        is_first_launch: True only for the session that started from session_count 0
        has_completed_onboarding: Whether the first-run carousel was completed
        has_account: Whether the user is signed in
        session_count: Number of cold boots
        prompt_count: Number of sign-up prompts shown
        high_intent_actions: Likes, saves and follows recorded as a guest
        last_prompt_timestamp: Epoch ms of the last counted prompt
        display_name: Name from the last sign-in
        email: Email from the last sign-in
        prompt_open: A prompt was counted on display and not yet dismissed

    Invariants:
        - session_count never decreases while the record exists
        - high_intent_actions does not change while has_account is True
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    is_first_launch: bool = True
    has_completed_onboarding: bool = False
    has_account: bool = False
    session_count: Annotated[int, Field(ge=0)] = 0
    prompt_count: Annotated[int, Field(ge=0)] = 0
    high_intent_actions: Annotated[int, Field(ge=0)] = 0
    last_prompt_timestamp: int | None = None
    display_name: str | None = None
    email: str | None = None
    prompt_open: bool = False

    @classmethod
    def from_json(cls, raw: str) -> EngagementState:
        """Parse a persisted record, filling missing keys with defaults.

        Raises:
            pydantic.ValidationError: If raw is not a JSON object of the
                expected shape
        """
        return cls.model_validate_json(raw)

    def to_json(self) -> str:
        """Serialize the full record with camelCase keys."""
        return self.model_dump_json(by_alias=True)

    def days_since_last_prompt(self, now: int) -> float | None:
        """Real-valued days between the last counted prompt and now."""
        if self.last_prompt_timestamp is None:
            return None
        return (now - self.last_prompt_timestamp) / MS_PER_DAY


DEFAULT_STATE = EngagementState()
