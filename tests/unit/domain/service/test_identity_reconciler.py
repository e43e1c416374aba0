"""Unit tests for IdentityReconciler."""

import asyncio

from dishka import AsyncContainer
import pytest

from linkage.adapter.analytics import InMemoryAnalyticsRecorder
from linkage.adapter.telemetry import InMemoryErrorTelemetry
from linkage.config import ReconciliationSettings
from linkage.domain.model import LinkedToCurrentAccount, LoggedIn, Rejected, SignedUp
from linkage.domain.service import (
    ConflictResolver,
    DetachedSession,
    IdentityReconciler,
    ReconciliationBranch,
    ReferralCodeGenerator,
    select_branch,
)
from linkage.domain.value import AuthProvider
from linkage.persistence.repository.inmemory import InMemoryAccountDirectory
from tests.conftest import make_account, make_assertion, make_identity
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


def build_reconciler(
    directory: InMemoryAccountDirectory,
    telemetry: InMemoryErrorTelemetry | None = None,
) -> IdentityReconciler:
    return IdentityReconciler(
        directory=directory,
        conflict_resolver=ConflictResolver(directory, directory_name="Linkage"),
        referral_codes=ReferralCodeGenerator(),
        settings=ReconciliationSettings(),
        analytics=InMemoryAnalyticsRecorder(),
        telemetry=telemetry or InMemoryErrorTelemetry(),
    )


class YieldingDirectory(InMemoryAccountDirectory):
    """Directory whose identity lookup yields, so concurrent calls interleave."""

    async def find_identity(self, provider, external_id):
        await asyncio.sleep(0)
        return await super().find_identity(provider, external_id)


class UnreachableDirectory(InMemoryAccountDirectory):
    """Directory that fails every identity lookup."""

    async def find_identity(self, provider, external_id):
        raise ConnectionError("directory unreachable")


class TestSelectBranch:
    """Tests for the branch table."""

    def test_session_with_foreign_link_is_link_conflict(self):
        session_account = make_account()
        existing = make_identity("1", account_id=make_account("other").id)

        assert (
            select_branch(session_account, existing)
            is ReconciliationBranch.LINK_CONFLICT
        )

    @pytest.mark.parametrize("owned", [None, "self", "unlinked"])
    def test_session_without_foreign_link_is_link(self, owned):
        session_account = make_account()
        existing = {
            None: None,
            "self": make_identity("1", account_id=session_account.id),
            "unlinked": make_identity("1", account_id=None),
        }[owned]

        assert select_branch(session_account, existing) is ReconciliationBranch.LINK

    def test_no_session_with_identity_is_login(self):
        existing = make_identity("1", account_id=make_account().id)

        assert select_branch(None, existing) is ReconciliationBranch.LOGIN

    def test_no_session_no_identity_is_signup(self):
        assert select_branch(None, None) is ReconciliationBranch.SIGNUP


class TestSignup:
    """Tests for the signup branch."""

    @pytest.mark.asyncio
    async def test_fresh_identity_signs_up_with_handle_as_username(
        self, unit_env: AsyncContainer
    ):
        """No session, no link, no conflict and a free username."""
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        analytics = await unit_env.get(InMemoryAnalyticsRecorder)
        session = DetachedSession(marketing_meta={"utm_source": "newsletter"})
        assertion = make_assertion(
            handle="alice",
            display_name="Alice Pleasance Liddell",
            email="alice@example.com",
            avatar_url="https://img.example.com/alice.jpg",
        )

        # Act
        outcome = await reconciler.reconcile(assertion, session=session)

        # Assert
        assert isinstance(outcome, SignedUp)
        account = outcome.account
        assert account.username.root == "alice"
        assert account.first_name == "Alice Pleasance"
        assert account.last_name == "Liddell"
        assert account.email == "alice@example.com"
        assert account.photo_url == "https://img.example.com/alice.jpg"
        assert account.signup_provider == AuthProvider.TWITTER
        assert account.marketing_meta == {"utm_source": "newsletter"}
        assert account.referral_code == ReferralCodeGenerator().generate(
            "alice@example.com"
        )

        identity = await directory.find_identity(AuthProvider.TWITTER, "12345")
        assert identity is not None
        assert identity.account_id == account.id
        assert identity.access_token == "new-token"
        assert identity.access_token_secret == "s3cret"
        assert identity.last_login_at is not None

        assert await directory.load_account(account.id) == account
        assert analytics.events == [("signup", "successful", "twitter")]
        assert session.is_new_signup is True

    @pytest.mark.asyncio
    async def test_referral_code_falls_back_to_handle(self, unit_env: AsyncContainer):
        reconciler = await unit_env.get(IdentityReconciler)

        outcome = await reconciler.reconcile(make_assertion(handle="bob", email=None))

        assert isinstance(outcome, SignedUp)
        assert outcome.account.referral_code == ReferralCodeGenerator().generate(
            "bob"
        )

    @pytest.mark.asyncio
    async def test_single_word_name_becomes_last_name(self, unit_env: AsyncContainer):
        reconciler = await unit_env.get(IdentityReconciler)

        outcome = await reconciler.reconcile(make_assertion(display_name="Madonna"))

        assert isinstance(outcome, SignedUp)
        assert outcome.account.first_name == ""
        assert outcome.account.last_name == "Madonna"

    @pytest.mark.asyncio
    async def test_taken_username_gets_provider_suffix(self, unit_env: AsyncContainer):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        await directory.save_account(make_account(username="alice"))

        # Act
        outcome = await reconciler.reconcile(make_assertion(handle="alice"))

        # Assert
        assert isinstance(outcome, SignedUp)
        assert outcome.account.username.root == "alice-t"

    @pytest.mark.asyncio
    async def test_suffix_follows_provider(self, unit_env: AsyncContainer):
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        await directory.save_account(make_account(username="alice"))

        outcome = await reconciler.reconcile(
            make_assertion(handle="alice", provider=AuthProvider.GITHUB)
        )

        assert isinstance(outcome, SignedUp)
        assert outcome.account.username.root == "alice-gh"

    @pytest.mark.asyncio
    async def test_second_username_collision_is_integrity_rejection(
        self, unit_env: AsyncContainer
    ):
        """Only one suffix is tried; the constraint rejects the second clash."""
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        telemetry = await unit_env.get(InMemoryErrorTelemetry)
        await directory.save_account(make_account(username="alice"))
        await directory.save_account(make_account(username="alice-t"))

        # Act
        outcome = await reconciler.reconcile(make_assertion(handle="alice"))

        # Assert
        assert outcome == Rejected(reason="Authentication failed", cause="integrity")
        assert await directory.count_accounts_by_username("alice-t") == 1
        assert await directory.find_identity(AuthProvider.TWITTER, "12345") is None
        assert telemetry.captured == []


class TestEmailConflict:
    """Tests for signup email conflicts."""

    @pytest.mark.asyncio
    async def test_shared_email_without_provider_link_is_rejected(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        existing = await directory.save_account(
            make_account(username="old", email="alice@example.com")
        )
        writes_before = directory.writes

        # Act
        outcome = await reconciler.reconcile(
            make_assertion(handle="alice", email="alice@example.com")
        )

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.cause == "conflict"
        assert str(existing.id) in outcome.reason
        assert "Linkage account(s)" in outcome.reason
        assert "connect Twitter" in outcome.reason
        assert "'Forgot Password'" in outcome.reason
        assert directory.writes == writes_before
        assert await directory.count_accounts_by_username("alice") == 0

    @pytest.mark.asyncio
    async def test_rejection_is_repeatable(self, unit_env: AsyncContainer):
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        await directory.save_account(make_account(email="alice@example.com"))
        assertion = make_assertion(email="alice@example.com")

        first = await reconciler.reconcile(assertion)
        second = await reconciler.reconcile(assertion)

        assert isinstance(first, Rejected)
        assert first == second
        assert directory.writes == 0

    @pytest.mark.asyncio
    async def test_message_lists_every_blocking_account(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        first = await directory.save_account(
            make_account(username="one", email="a@example.com", signup_provider=None)
        )
        second = await directory.save_account(
            make_account(username="two", email="a@example.com", signup_provider=None)
        )

        # Act
        outcome = await reconciler.reconcile(make_assertion(email="a@example.com"))

        # Assert
        assert isinstance(outcome, Rejected)
        listed = outcome.reason.split("[ ", 1)[1].split(" ]", 1)[0]
        assert set(listed.split(",")) == {str(first.id), str(second.id)}

    @pytest.mark.asyncio
    async def test_account_already_linked_to_provider_does_not_block(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        existing = await directory.save_account(
            make_account(email="alice@example.com", signup_provider=None)
        )
        await directory.upsert_identity(make_identity("999", account_id=existing.id))

        # Act
        outcome = await reconciler.reconcile(
            make_assertion(external_id="12345", email="alice@example.com")
        )

        # Assert
        assert isinstance(outcome, SignedUp)
        assert outcome.account.id != existing.id


class TestLink:
    """Tests for linking an identity to the session account."""

    @pytest.mark.asyncio
    async def test_new_identity_links_to_session_account(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account())

        # Act
        outcome = await reconciler.reconcile(
            make_assertion(), session_account=account
        )

        # Assert
        assert outcome == LinkedToCurrentAccount(account=account)
        identity = await directory.find_identity(AuthProvider.TWITTER, "12345")
        assert identity.account_id == account.id
        assert directory.writes == 1

    @pytest.mark.asyncio
    async def test_unlinked_identity_is_claimed(self, unit_env: AsyncContainer):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account())
        orphan = await directory.upsert_identity(make_identity("12345", None))
        writes_before = directory.writes

        # Act
        outcome = await reconciler.reconcile(
            make_assertion(), session_account=account
        )

        # Assert
        assert isinstance(outcome, LinkedToCurrentAccount)
        assert outcome.account.id == account.id
        identity = await directory.find_identity(AuthProvider.TWITTER, "12345")
        assert identity.id == orphan.id
        assert identity.account_id == account.id
        assert directory.writes == writes_before + 1

    @pytest.mark.asyncio
    async def test_relinking_own_identity_refreshes_tokens(
        self, unit_env: AsyncContainer
    ):
        """Session account already owns the link: idempotent refresh."""
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account())
        await directory.upsert_identity(make_identity("12345", account.id))

        # Act
        outcome = await reconciler.reconcile(
            make_assertion(handle="renamed", access_token="fresh"),
            session_account=account,
        )

        # Assert
        assert outcome == LinkedToCurrentAccount(account=account)
        identity = await directory.find_identity(AuthProvider.TWITTER, "12345")
        assert identity.access_token == "fresh"
        assert identity.display_handle == "renamed"
        assert len(directory._accounts) == 1

    @pytest.mark.asyncio
    async def test_identity_linked_elsewhere_is_rejected_without_writes(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account("me"))
        owner = await directory.save_account(make_account("owner"))
        await directory.upsert_identity(make_identity("12345", owner.id))
        writes_before = directory.writes

        # Act
        outcome = await reconciler.reconcile(
            make_assertion(), session_account=account
        )

        # Assert
        assert outcome == Rejected(
            reason=f"Your Twitter account is already linked to account {owner.id}",
            cause="conflict",
        )
        assert directory.writes == writes_before
        identity = await directory.find_identity(AuthProvider.TWITTER, "12345")
        assert identity.account_id == owner.id

    @pytest.mark.asyncio
    async def test_missing_session_account_is_rejected(
        self, unit_env: AsyncContainer
    ):
        """Session names an account that was deleted meanwhile."""
        reconciler = await unit_env.get(IdentityReconciler)
        ghost = make_account()

        outcome = await reconciler.reconcile(make_assertion(), session_account=ghost)

        assert outcome == Rejected(
            reason="Could not retrieve existing linked account", cause="integrity"
        )


class TestLogin:
    """Tests for the login branch."""

    @pytest.mark.asyncio
    async def test_linked_identity_logs_in_and_refreshes_tokens(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        analytics = await unit_env.get(InMemoryAnalyticsRecorder)
        account = await directory.save_account(make_account())
        await directory.upsert_identity(make_identity("12345", account.id))

        # Act
        outcome = await reconciler.reconcile(make_assertion(access_token="fresh"))

        # Assert
        assert outcome == LoggedIn(account=account)
        identity = await directory.find_identity(AuthProvider.TWITTER, "12345")
        assert identity.access_token == "fresh"
        assert identity.last_login_at is not None
        assert analytics.events == []

    @pytest.mark.asyncio
    async def test_login_ignores_email_conflicts(self, unit_env: AsyncContainer):
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account("mine"))
        await directory.save_account(make_account("other", email="x@example.com"))
        await directory.upsert_identity(make_identity("12345", account.id))

        outcome = await reconciler.reconcile(make_assertion(email="x@example.com"))

        assert outcome == LoggedIn(account=account)

    @pytest.mark.asyncio
    async def test_link_to_deleted_account_is_rejected(
        self, unit_env: AsyncContainer
    ):
        """No session, identity whose account no longer exists."""
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        account = await directory.save_account(make_account())
        await directory.upsert_identity(make_identity("12345", account.id))
        await directory.delete_account(account.id)

        # Act
        outcome = await reconciler.reconcile(make_assertion())

        # Assert
        assert outcome == Rejected(
            reason="Could not retrieve existing linked account", cause="integrity"
        )
        assert len(directory._accounts) == 0

    @pytest.mark.asyncio
    async def test_unlinked_identity_without_session_is_rejected(
        self, unit_env: AsyncContainer
    ):
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        await directory.upsert_identity(make_identity("12345", None))

        outcome = await reconciler.reconcile(make_assertion())

        assert isinstance(outcome, Rejected)
        assert outcome.reason == "Could not retrieve existing linked account"


class TestFaults:
    """Tests for unexpected failures and side effects."""

    @pytest.mark.asyncio
    async def test_directory_failure_is_captured_fault(self):
        # Arrange
        telemetry = InMemoryErrorTelemetry()
        reconciler = build_reconciler(UnreachableDirectory(), telemetry)

        # Act
        outcome = await reconciler.reconcile(make_assertion())

        # Assert
        assert outcome == Rejected(reason="directory unreachable", cause="fault")
        assert len(telemetry.captured) == 1
        assert isinstance(telemetry.captured[0], ConnectionError)

    @pytest.mark.asyncio
    async def test_missing_display_name_is_fault(self, unit_env: AsyncContainer):
        reconciler = await unit_env.get(IdentityReconciler)
        telemetry = await unit_env.get(InMemoryErrorTelemetry)

        outcome = await reconciler.reconcile(make_assertion(display_name=None))

        assert isinstance(outcome, Rejected)
        assert outcome.cause == "fault"
        assert len(telemetry.captured) == 1

    @pytest.mark.asyncio
    async def test_conflicts_are_not_captured(self, unit_env: AsyncContainer):
        reconciler = await unit_env.get(IdentityReconciler)
        directory = await unit_env.get(InMemoryAccountDirectory)
        telemetry = await unit_env.get(InMemoryErrorTelemetry)
        await directory.save_account(make_account(email="alice@example.com"))

        await reconciler.reconcile(make_assertion(email="alice@example.com"))

        assert telemetry.captured == []

    @pytest.mark.asyncio
    async def test_analytics_failure_does_not_change_outcome(
        self, unit_env: AsyncContainer
    ):
        # Arrange
        reconciler = await unit_env.get(IdentityReconciler)
        analytics = await unit_env.get(InMemoryAnalyticsRecorder)
        telemetry = await unit_env.get(InMemoryErrorTelemetry)
        analytics.fail_with = RuntimeError("analytics down")
        session = DetachedSession()

        # Act
        outcome = await reconciler.reconcile(make_assertion(), session=session)

        # Assert
        assert isinstance(outcome, SignedUp)
        assert session.is_new_signup is True
        assert telemetry.captured == []

    @pytest.mark.asyncio
    async def test_session_failure_does_not_change_outcome(
        self, unit_env: AsyncContainer
    ):
        class BrokenSession(DetachedSession):
            def mark_new_signup(self) -> None:
                raise RuntimeError("session store down")

        reconciler = await unit_env.get(IdentityReconciler)

        outcome = await reconciler.reconcile(make_assertion(), session=BrokenSession())

        assert isinstance(outcome, SignedUp)

    @pytest.mark.asyncio
    async def test_telemetry_failure_does_not_escape(self):
        class BrokenTelemetry(InMemoryErrorTelemetry):
            def capture_exception(self, error: BaseException) -> None:
                raise RuntimeError("telemetry down")

        reconciler = build_reconciler(UnreachableDirectory(), BrokenTelemetry())

        outcome = await reconciler.reconcile(make_assertion())

        assert outcome == Rejected(reason="directory unreachable", cause="fault")


class TestConcurrency:
    """Tests for racing reconciliations."""

    @pytest.mark.asyncio
    async def test_concurrent_signups_create_one_account(self):
        # Arrange
        directory = YieldingDirectory()
        reconciler = build_reconciler(directory)
        assertion = make_assertion(email="alice@example.com")

        # Act
        outcomes = await asyncio.gather(
            reconciler.reconcile(assertion), reconciler.reconcile(assertion)
        )

        # Assert
        signed_up = [o for o in outcomes if isinstance(o, SignedUp)]
        rejected = [o for o in outcomes if isinstance(o, Rejected)]
        assert len(signed_up) == 1
        assert rejected == [
            Rejected(reason="Authentication failed", cause="integrity")
        ]
        assert len(directory._accounts) == 1
        identity = await directory.find_identity(AuthProvider.TWITTER, "12345")
        assert identity.account_id == signed_up[0].account.id
