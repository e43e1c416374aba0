"""Account directory interface."""

from abc import ABC, abstractmethod
from typing import Optional

from linkage.domain.model.account import Account
from linkage.domain.model.external_identity import ExternalIdentity
from linkage.domain.value import AccountId, AuthProvider


class AccountDirectory(ABC):
    """Persistent store of accounts and their external identities.

    Every method is a single request/response call. Implementations enforce
    uniqueness of usernames, referral codes, signup emails and
    (provider, external_id), reporting violations as ``IntegrityRejection``.
    """

    @abstractmethod
    async def find_identity(
        self, provider: AuthProvider, external_id: str
    ) -> Optional[ExternalIdentity]:
        """Find an external identity by provider and provider-side id.

        Args:
            provider: The identity provider
            external_id: The account id on that provider

        Returns:
            The identity if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_accounts_by_email(
        self, email: str, without_provider: Optional[AuthProvider] = None
    ) -> list[Account]:
        """Find accounts with exactly this email.

        Args:
            email: Email address to match
            without_provider: When given, skip accounts that already hold an
                identity for this provider

        Returns:
            Matching accounts in directory order (not guaranteed stable)
        """
        pass

    @abstractmethod
    async def count_accounts_by_username(self, username: str) -> int:
        """Count accounts owning this exact username.

        Args:
            username: Username to look up

        Returns:
            Number of matching accounts (0 or 1)
        """
        pass

    @abstractmethod
    async def create_account_with_identity(
        self, account: Account, identity: ExternalIdentity
    ) -> tuple[Account, ExternalIdentity]:
        """Create an account and its identity as one atomic unit.

        Either both records become visible or neither does.

        Args:
            account: Account to create
            identity: Identity to create, linked to ``account``

        Returns:
            The stored account and identity

        Raises:
            IntegrityRejection: If a uniqueness constraint is violated
        """
        pass

    @abstractmethod
    async def upsert_identity(self, identity: ExternalIdentity) -> ExternalIdentity:
        """Insert or refresh an identity keyed by (provider, external_id).

        Re-running with the same (provider, external_id, account_id) only
        refreshes tokens, handle and timestamps.

        Args:
            identity: Identity carrying the desired state

        Returns:
            The stored identity (keeps the original id on update)

        Raises:
            IntegrityRejection: If the identity is linked to another account
        """
        pass

    @abstractmethod
    async def load_account(self, account_id: AccountId) -> Optional[Account]:
        """Load an account by id.

        Args:
            account_id: The account's unique identifier

        Returns:
            The account if found, None otherwise
        """
        pass
