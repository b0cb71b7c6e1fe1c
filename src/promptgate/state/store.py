"""Engagement store: the single writer of the engagement record.

This module provides the EngagementStore class that handles:
- Loading the persisted record at boot (defaults when absent or corrupt)
- Session counting
- Onboarding, sign-in and prompt transitions
- Write-through persistence of the full record after each mutation

Persistence failures never reach the caller. They are logged, and the
in-memory record stays authoritative for the rest of the process.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from promptgate.auth import AuthProvider, AuthResult, provider_tag
from promptgate.clock import Clock, get_clock
from promptgate.config.schema import DEFAULT_STORAGE_KEY
from promptgate.logging import (
    log_persistence_failure,
    log_state_corrupt,
    log_state_loaded,
    log_transition,
)
from promptgate.state.model import DEFAULT_STATE, EngagementState

if TYPE_CHECKING:
    from promptgate.persistence.base import PersistenceAdapter

logger = logging.getLogger(__name__)


class EngagementStore:
    """Holds the authoritative EngagementState and its mutation surface.

    Construct one store per process and pass it to whatever needs it. Every
    transition mutates the in-memory record, then writes the full record to
    the persistence adapter, and returns once the write has completed (or
    failed and been logged).

    Transitions are not locked. Await each one before issuing the next.

    Args:
        persistence: Async key-value adapter
        clock: Time source for prompt timestamps (default: system clock)
        key: Storage key for the serialized record

    Example:
        >>> store = EngagementStore(MemoryPersistence())
        >>> await store.load()
        >>> await store.init_session()
        >>> store.state.session_count
        1
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        *,
        clock: Clock | None = None,
        key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self._persistence = persistence
        self._clock = clock or get_clock()
        self.key = key
        self._state = DEFAULT_STATE
        self._loaded = False
        self.last_sign_in_method: str | None = None

    @property
    def state(self) -> EngagementState:
        """Current in-memory record (immutable snapshot)."""
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # -------------------------------------------------------------------------
    # Loading and persistence
    # -------------------------------------------------------------------------

    async def load(self) -> EngagementState:
        """Read the persisted record and merge it over the defaults.

        A missing, unreadable or malformed record yields the defaults.
        ``is_first_launch`` is re-derived from ``session_count == 0``.

        Returns:
            The loaded record
        """
        raw: str | None = None
        try:
            raw = await self._persistence.get(self.key)
        except Exception as e:  # noqa: BLE001
            log_persistence_failure("get", self.key, str(e))

        state = DEFAULT_STATE
        if raw:
            try:
                parsed = EngagementState.from_json(raw)
            except ValidationError as e:
                log_state_corrupt(self.key, f"{e.error_count()} validation error(s)")
            else:
                state = parsed.model_copy(
                    update={"is_first_launch": parsed.session_count == 0}
                )

        self._state = state
        self._loaded = True
        log_state_loaded(
            self.key,
            found=state is not DEFAULT_STATE,
            session_count=state.session_count,
        )
        return state

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self.load()

    async def _persist(self) -> None:
        try:
            await self._persistence.set(self.key, self._state.to_json())
        except Exception as e:  # noqa: BLE001
            log_persistence_failure("set", self.key, str(e))

    async def _commit(self, operation: str, **changes: object) -> EngagementState:
        self._state = self._state.model_copy(update=changes)
        log_transition(
            operation,
            changed=True,
            session_count=self._state.session_count,
            prompt_count=self._state.prompt_count,
            high_intent_actions=self._state.high_intent_actions,
            has_account=self._state.has_account,
        )
        await self._persist()
        return self._state

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def init_session(self) -> EngagementState:
        """Count a cold boot.

        Call exactly once per process start; repeat calls count again.
        """
        await self._ensure_loaded()
        return await self._commit(
            "init_session",
            is_first_launch=self._state.session_count == 0,
            session_count=self._state.session_count + 1,
        )

    async def complete_onboarding(self) -> EngagementState:
        """Mark the first-run carousel as completed. Idempotent."""
        await self._ensure_loaded()
        return await self._commit("complete_onboarding", has_completed_onboarding=True)

    async def sign_in(
        self,
        method: AuthProvider | str,
        display_name: str | None = None,
        email: str | None = None,
    ) -> EngagementState:
        """Record a successful sign-in.

        Args:
            method: Provider tag; unknown tags are kept as-is
            display_name: Replaces the stored name only when non-empty
            email: Replaces the stored email only when non-empty
        """
        await self._ensure_loaded()
        self.last_sign_in_method = provider_tag(method)
        return await self._commit(
            "sign_in",
            has_account=True,
            prompt_open=False,
            display_name=display_name or self._state.display_name,
            email=email or self._state.email,
        )

    async def apply_sign_in_result(self, result: AuthResult) -> bool:
        """Apply the outcome of an external provider flow.

        Returns:
            True if the result was a successful sign-in and was recorded
        """
        if result.success and result.user is not None:
            user = result.user
            await self.sign_in(user.provider, user.display_name, user.email)
            return True

        if result.is_cancelled:
            logger.debug("Sign-in cancelled by user")
        else:
            logger.warning("Sign-in failed: %s", result.error or "no user returned")
        return False

    async def continue_as_guest(self) -> EngagementState:
        """Dismiss the current prompt without signing in.

        Counts the prompt unless record_prompt_shown() already counted it,
        in this process or an earlier one.
        """
        await self._ensure_loaded()
        if self._state.prompt_open:
            return await self._commit("continue_as_guest", prompt_open=False)
        return await self._commit(
            "continue_as_guest",
            prompt_count=self._state.prompt_count + 1,
            last_prompt_timestamp=self._clock.now_ms(),
        )

    async def sign_out(self) -> EngagementState:
        """Drop the account and identity fields; counters are kept."""
        await self._ensure_loaded()
        self.last_sign_in_method = None
        return await self._commit(
            "sign_out",
            has_account=False,
            display_name=None,
            email=None,
        )

    async def track_high_intent_action(self) -> EngagementState:
        """Count a like, save or follow. No-op once the user has an account."""
        await self._ensure_loaded()
        if self._state.has_account:
            log_transition("track_high_intent_action", changed=False, reason="has_account")
            return self._state
        return await self._commit(
            "track_high_intent_action",
            high_intent_actions=self._state.high_intent_actions + 1,
        )

    async def record_prompt_shown(self) -> EngagementState:
        """Count a prompt at the moment it is displayed."""
        await self._ensure_loaded()
        return await self._commit(
            "record_prompt_shown",
            prompt_open=True,
            prompt_count=self._state.prompt_count + 1,
            last_prompt_timestamp=self._clock.now_ms(),
        )

    async def reset_onboarding(self) -> EngagementState:
        """Reset the record to defaults and delete the persisted entry."""
        self._state = DEFAULT_STATE
        self._loaded = True
        self.last_sign_in_method = None
        log_transition("reset_onboarding", changed=True)
        try:
            await self._persistence.remove(self.key)
        except Exception as e:  # noqa: BLE001
            log_persistence_failure("remove", self.key, str(e))
        return self._state
