"""Sign-in results handed over by external identity providers.

promptgate never talks to Apple, Google or an email backend. The caller runs
the provider flow and passes the resolved result to
``EngagementStore.apply_sign_in_result``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SIGN_IN_CANCELLED = "Sign-in was cancelled"


class AuthProvider(str, Enum):
    """Known sign-in provider tags. Other tags are accepted as plain strings."""

    APPLE = "apple"
    GOOGLE = "google"
    EMAIL = "email"
    EMAIL_PASSWORD = "email-password"


class AuthUser(BaseModel):
    """Identity fields resolved by a provider."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    email: str | None = None
    display_name: str | None = None
    provider: AuthProvider | str
    token: str | None = Field(default=None, repr=False)


class AuthResult(BaseModel):
    """Outcome of an external sign-in flow: ``{success, user?, error?}``."""

    model_config = ConfigDict(frozen=True)

    success: bool
    user: AuthUser | None = None
    error: str | None = None

    @property
    def is_cancelled(self) -> bool:
        """Check if the user backed out of the provider flow."""
        return not self.success and self.error == SIGN_IN_CANCELLED

    @classmethod
    def cancelled(cls) -> AuthResult:
        return cls(success=False, error=SIGN_IN_CANCELLED)

    @classmethod
    def failed(cls, error: str) -> AuthResult:
        return cls(success=False, error=error)


def provider_tag(provider: AuthProvider | str) -> str:
    """Return the plain string tag for a provider."""
    if isinstance(provider, AuthProvider):
        return provider.value
    return provider
