"""In-memory account directory for testing."""

import asyncio
from typing import Optional

from linkage.domain.error import IntegrityRejection
from linkage.domain.model import Account, ExternalIdentity
from linkage.domain.repository.directory import AccountDirectory
from linkage.domain.value import AccountId, AuthProvider


class InMemoryAccountDirectory(AccountDirectory):
    """In-memory implementation of AccountDirectory for testing.

    Enforces the same uniqueness constraints as the PostgreSQL schema, and
    serializes writes with a lock so concurrent signups race the way they do
    against a real database.
    """

    def __init__(self) -> None:
        self._accounts: dict[AccountId, Account] = {}
        self._identities: list[ExternalIdentity] = []
        self._lock = asyncio.Lock()
        self.writes = 0  # Successful create/upsert calls

    async def find_identity(
        self, provider: AuthProvider, external_id: str
    ) -> Optional[ExternalIdentity]:
        """Find an identity by provider and provider-side id."""
        for identity in self._identities:
            if identity.provider == provider and identity.external_id == external_id:
                return identity
        return None

    async def find_accounts_by_email(
        self, email: str, without_provider: Optional[AuthProvider] = None
    ) -> list[Account]:
        """Find accounts with this email, optionally skipping provider links."""
        linked = set()
        if without_provider is not None:
            linked = {
                i.account_id
                for i in self._identities
                if i.provider == without_provider and i.account_id is not None
            }
        return [
            account
            for account in self._accounts.values()
            if account.email == email and account.id not in linked
        ]

    async def count_accounts_by_username(self, username: str) -> int:
        """Count accounts owning this exact username."""
        return sum(1 for a in self._accounts.values() if a.username.root == username)

    async def create_account_with_identity(
        self, account: Account, identity: ExternalIdentity
    ) -> tuple[Account, ExternalIdentity]:
        """Create account and identity atomically."""
        async with self._lock:
            self._check_account_constraints(account)
            if await self.find_identity(identity.provider, identity.external_id):
                raise IntegrityRejection("uq_provider_external_id")

            linked = identity.model_copy(update={"account_id": account.id})
            self._accounts[account.id] = account
            self._identities.append(linked)
            self.writes += 1
            return account, linked

    async def upsert_identity(self, identity: ExternalIdentity) -> ExternalIdentity:
        """Insert or refresh an identity keyed by (provider, external_id)."""
        async with self._lock:
            for i, existing in enumerate(self._identities):
                if (
                    existing.provider == identity.provider
                    and existing.external_id == identity.external_id
                ):
                    if identity.account_id is not None and not existing.is_claimable_by(
                        identity.account_id
                    ):
                        raise IntegrityRejection(
                            "uq_provider_external_id",
                            f"linked to account {existing.account_id}",
                        )
                    refreshed = existing.model_copy(
                        update={
                            "access_token": identity.access_token,
                            "access_token_secret": identity.access_token_secret,
                            "display_handle": identity.display_handle,
                            "account_id": identity.account_id or existing.account_id,
                            "updated_at": identity.updated_at,
                            "last_login_at": identity.last_login_at,
                        }
                    )
                    self._identities[i] = refreshed
                    self.writes += 1
                    return refreshed

            self._identities.append(identity)
            self.writes += 1
            return identity

    async def load_account(self, account_id: AccountId) -> Optional[Account]:
        """Load an account by id."""
        return self._accounts.get(account_id)

    async def save_account(self, account: Account) -> Account:
        """Store an account without an identity (test seeding)."""
        async with self._lock:
            self._check_account_constraints(account, replacing=account.id)
            self._accounts[account.id] = account
            return account

    async def delete_account(self, account_id: AccountId) -> None:
        """Remove an account, orphaning its identities (ON DELETE SET NULL)."""
        async with self._lock:
            self._accounts.pop(account_id, None)
            self._identities = [
                i.model_copy(update={"account_id": None})
                if i.account_id == account_id
                else i
                for i in self._identities
            ]

    def _check_account_constraints(
        self, account: Account, replacing: Optional[AccountId] = None
    ) -> None:
        for other in self._accounts.values():
            if other.id == replacing:
                continue
            if other.id == account.id:
                raise IntegrityRejection("accounts_pkey")
            if other.username == account.username:
                raise IntegrityRejection("uq_accounts_username", account.username.root)
            if other.referral_code == account.referral_code:
                raise IntegrityRejection("uq_accounts_referral_code")
            if (
                account.email is not None
                and account.signup_provider is not None
                and other.signup_provider is not None
                and other.email == account.email
            ):
                raise IntegrityRejection("uq_accounts_signup_email")
