"""Domain value objects for Linkage."""

from linkage.domain.value.identifiers import AccountId, ExternalIdentityId
from linkage.domain.value.types import (
    AuthProvider,
    ExternalProfile,
    ProviderAssertion,
    ProviderTokens,
    ReferralCode,
    Username,
)

__all__ = [
    # Identifiers
    "AccountId",
    "ExternalIdentityId",
    # Types
    "AuthProvider",
    "ExternalProfile",
    "ProviderAssertion",
    "ProviderTokens",
    "ReferralCode",
    "Username",
]
