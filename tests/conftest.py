"""Test configuration and helpers."""

from datetime import datetime, timezone
from uuid import uuid4

import logfire

from linkage.domain.model import Account, ExternalIdentity
from linkage.domain.value import (
    AccountId,
    AuthProvider,
    ExternalIdentityId,
    ExternalProfile,
    ProviderAssertion,
    ProviderTokens,
    ReferralCode,
    Username,
)


def make_account(
    username: str = "existing",
    email: str | None = None,
    signup_provider: AuthProvider | None = AuthProvider.GITHUB,
    referral_code: str | None = None,
) -> Account:
    """Build an account with unique id and referral code."""
    account_id = AccountId(uuid4())
    now = datetime.now(timezone.utc)
    return Account(
        id=account_id,
        username=Username(username),
        email=email,
        referral_code=ReferralCode(
            referral_code or f"REF{account_id.hex[:8].upper()}"
        ),
        signup_provider=signup_provider,
        created_at=now,
        updated_at=now,
    )


def make_identity(
    external_id: str,
    account_id: AccountId | None,
    provider: AuthProvider = AuthProvider.TWITTER,
    access_token: str = "old-token",
    display_handle: str = "old_handle",
) -> ExternalIdentity:
    """Build an external identity, linked when ``account_id`` is given."""
    now = datetime.now(timezone.utc)
    return ExternalIdentity(
        id=ExternalIdentityId(uuid4()),
        provider=provider,
        external_id=external_id,
        access_token=access_token,
        display_handle=display_handle,
        account_id=account_id,
        created_at=now,
        updated_at=now,
    )


def make_assertion(
    external_id: str = "12345",
    handle: str = "alice",
    display_name: str | None = "Alice Liddell",
    email: str | None = None,
    provider: AuthProvider = AuthProvider.TWITTER,
    access_token: str = "new-token",
    avatar_url: str | None = None,
) -> ProviderAssertion:
    """Build a provider assertion for the reconciler."""
    return ProviderAssertion(
        provider=provider,
        profile=ExternalProfile(
            external_id=external_id,
            display_handle=handle,
            display_name=display_name,
            email=email,
            avatar_url=avatar_url,
        ),
        tokens=ProviderTokens(access_token=access_token, access_token_secret="s3cret"),
    )


# Local-only logfire so instrumented code runs without a token
logfire.configure(send_to_logfire=False, console=False)
