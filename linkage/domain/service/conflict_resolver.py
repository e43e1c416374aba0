"""Email conflict detection for provider signups."""

from collections.abc import Sequence

import logfire

from linkage.domain.error import ConflictRejection
from linkage.domain.model.account import Account
from linkage.domain.repository.directory import AccountDirectory
from linkage.domain.value import AuthProvider

from .base import Service


class ConflictResolver(Service):
    """Decide whether a signup email collides with existing accounts.

    Accounts that already hold an identity for the same provider are not
    blocking: a signup for them cannot happen, the reconciler would have
    taken the login branch instead.
    """

    def __init__(self, directory: AccountDirectory, directory_name: str) -> None:
        """Initialize conflict resolver.

        Args:
            directory: Account directory
            directory_name: Name of the directory used in messages
        """
        self.directory = directory
        self.directory_name = directory_name

    async def find_blocking_accounts(
        self, email: str, provider: AuthProvider
    ) -> list[Account]:
        """Find accounts using ``email`` without a link for ``provider``.

        Args:
            email: Email asserted by the provider
            provider: Provider the signup comes from

        Returns:
            Blocking accounts in directory order; empty means proceed
        """
        with logfire.span(
            "conflict_resolver.find_blocking_accounts", provider=provider.value
        ):
            accounts = await self.directory.find_accounts_by_email(
                email, without_provider=provider
            )
            if accounts:
                logfire.info(
                    "Signup email already in use",
                    provider=provider.value,
                    account_ids=[str(a.id) for a in accounts],
                )
            return accounts

    def rejection_message(
        self, email: str, provider: AuthProvider, accounts: Sequence[Account]
    ) -> str:
        """Build the remediation message for blocking accounts.

        Args:
            email: The conflicting email
            provider: Provider the signup comes from
            accounts: Blocking accounts, ids are listed in this order

        Returns:
            Message telling the user how to recover their old account
        """
        account_ids = ",".join(str(account.id) for account in accounts)
        return (
            f'Your email id "{email}" is already used in the following '
            f"{self.directory_name} account(s): [ {account_ids} ]. "
            f"Please log into your old account and connect {provider.label} "
            "in it instead. Use the 'Forgot Password' option if you do not "
            "remember the password of the old account."
        )

    async def check(self, email: str, provider: AuthProvider) -> None:
        """Raise when the signup email is blocked.

        Args:
            email: Email asserted by the provider
            provider: Provider the signup comes from

        Raises:
            ConflictRejection: If any blocking account exists
        """
        accounts = await self.find_blocking_accounts(email, provider)
        if accounts:
            raise ConflictRejection(self.rejection_message(email, provider, accounts))
