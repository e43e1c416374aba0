"""Unit tests for ConflictResolver."""

from dishka import AsyncContainer
import pytest

from linkage.domain.error import ConflictRejection
from linkage.domain.service import ConflictResolver
from linkage.domain.value import AuthProvider
from linkage.persistence.repository.inmemory import InMemoryAccountDirectory
from tests.conftest import make_account, make_identity
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


class TestConflictResolver:
    """Tests for email conflict detection."""

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_blocked(self, unit_env: AsyncContainer):
        resolver = await unit_env.get(ConflictResolver)

        await resolver.check("nobody@example.com", AuthProvider.TWITTER)

    @pytest.mark.asyncio
    async def test_account_without_provider_link_blocks(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        resolver = await unit_env.get(ConflictResolver)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account(email="a@example.com"))

        # Act
        blocking = await resolver.find_blocking_accounts(
            "a@example.com", AuthProvider.TWITTER
        )

        # Assert
        assert blocking == [account]
        with pytest.raises(ConflictRejection, match=str(account.id)):
            await resolver.check("a@example.com", AuthProvider.TWITTER)

    @pytest.mark.asyncio
    async def test_link_for_other_provider_still_blocks(
        self, unit_env: AsyncContainer
    ):
        resolver = await unit_env.get(ConflictResolver)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account(email="a@example.com"))
        await directory.upsert_identity(
            make_identity("gh-1", account.id, provider=AuthProvider.GITHUB)
        )

        blocking = await resolver.find_blocking_accounts(
            "a@example.com", AuthProvider.TWITTER
        )

        assert blocking == [account]

    @pytest.mark.asyncio
    async def test_account_linked_to_same_provider_does_not_block(
        self, unit_env: AsyncContainer
    ):
        resolver = await unit_env.get(ConflictResolver)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account(email="a@example.com"))
        await directory.upsert_identity(make_identity("tw-1", account.id))

        blocking = await resolver.find_blocking_accounts(
            "a@example.com", AuthProvider.TWITTER
        )

        assert blocking == []

    def test_message_names_directory_provider_and_accounts(self):
        # Arrange
        resolver = ConflictResolver(InMemoryAccountDirectory(), "Example Accounts")
        accounts = [make_account("one"), make_account("two")]

        # Act
        message = resolver.rejection_message(
            "a@example.com", AuthProvider.GITHUB, accounts
        )

        # Assert
        assert '"a@example.com"' in message
        assert "Example Accounts account(s)" in message
        assert f"[ {accounts[0].id},{accounts[1].id} ]" in message
        assert "connect GitHub" in message
        assert "'Forgot Password'" in message
