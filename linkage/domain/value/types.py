"""Domain value objects for identity reconciliation.

Value objects are immutable and defined by their values, not identity.
They normalize the unreliable profile data handed over by OAuth providers.
"""

from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from linkage.domain.value.common import RootValueObject, ValueObject


class AuthProvider(str, Enum):
    """Supported external identity providers."""

    TWITTER = "twitter"
    GITHUB = "github"
    GOOGLE = "google"

    @property
    def label(self) -> str:
        """Human readable provider name used in user-facing messages."""
        return {
            AuthProvider.TWITTER: "Twitter",
            AuthProvider.GITHUB: "GitHub",
            AuthProvider.GOOGLE: "Google",
        }[self]


class Username(RootValueObject[str]):
    """Account username, globally unique within the directory."""

    @field_validator("root")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username is not empty and within length limits."""
        if len(v) < 1 or len(v) > 255:
            raise ValueError("Username must be 1-255 characters")
        return v


class ReferralCode(RootValueObject[str]):
    """Upper-cased referral code handed out to every new account."""

    @field_validator("root")
    @classmethod
    def validate_referral_code(cls, v: str) -> str:
        """Validate referral code is non-empty and upper-case."""
        if not v:
            raise ValueError("Referral code must not be empty")
        if v != v.upper():
            raise ValueError("Referral code must be upper-case")
        return v


class ProviderTokens(ValueObject):
    """Token material returned by the provider handshake.

    OAuth 1.0a providers return a token and a token secret, OAuth 2.0
    providers only an access token.
    """

    access_token: str
    access_token_secret: str | None = None


class ExternalProfile(ValueObject):
    """Profile data decoded from the provider.

    Nothing here is trusted: handles can change, names can be a single word
    and emails are frequently missing.
    """

    external_id: str  # Permanent id on the provider
    display_handle: str  # Screen name, may change over time
    display_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    raw_attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("email")
    @classmethod
    def blank_email_is_missing(cls, v: str | None) -> str | None:
        """Providers send "" for withheld emails; treat it as absent."""
        if v is not None and not v.strip():
            return None
        return v


class ProviderAssertion(ValueObject):
    """Confirmed identity claim for the current handshake."""

    provider: AuthProvider
    profile: ExternalProfile
    tokens: ProviderTokens

    @property
    def external_id(self) -> str:
        """Shortcut to the provider-side id."""
        return self.profile.external_id
