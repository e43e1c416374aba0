"""Identity reconciliation state machine.

Maps an inbound provider assertion to exactly one outcome:

    session | existing identity           | branch
    --------+-----------------------------+---------------
    yes     | linked to another account   | LINK_CONFLICT
    yes     | none / unlinked / own       | LINK
    no      | present                     | LOGIN
    no      | none                        | SIGNUP
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

import logfire

from linkage.config import ReconciliationSettings
from linkage.domain.error import ConflictRejection, IntegrityRejection
from linkage.domain.model import (
    Account,
    ExternalIdentity,
    LinkedToCurrentAccount,
    LoggedIn,
    ReconciliationOutcome,
    Rejected,
    SignedUp,
)
from linkage.domain.repository.directory import AccountDirectory
from linkage.domain.value import (
    AccountId,
    ExternalIdentityId,
    ProviderAssertion,
    Username,
)

from .account_defaults import split_display_name
from .base import Service
from .collaborators import (
    AnalyticsRecorder,
    DetachedSession,
    ErrorTelemetry,
    SignupSession,
)
from .conflict_resolver import ConflictResolver
from .referral import ReferralCodeGenerator
from .username import UsernameDisambiguator

AUTHENTICATION_FAILED = "Authentication failed"
MISSING_LINKED_ACCOUNT = "Could not retrieve existing linked account"


class ReconciliationBranch(str, Enum):
    """Branches of the reconciliation state machine."""

    LINK_CONFLICT = "link_conflict"
    LINK = "link"
    LOGIN = "login"
    SIGNUP = "signup"


def select_branch(
    session_account: Optional[Account], existing: Optional[ExternalIdentity]
) -> ReconciliationBranch:
    """Classify an assertion from the session principal and existing identity."""
    if session_account is not None:
        if existing is not None and not existing.is_claimable_by(session_account.id):
            return ReconciliationBranch.LINK_CONFLICT
        return ReconciliationBranch.LINK
    if existing is not None:
        return ReconciliationBranch.LOGIN
    return ReconciliationBranch.SIGNUP


class IdentityReconciler(Service):
    """Reconcile provider assertions with the account directory.

    Holds no state between calls. Directory calls are issued one after the
    other; atomicity of account creation is the directory's job.
    """

    def __init__(
        self,
        directory: AccountDirectory,
        conflict_resolver: ConflictResolver,
        referral_codes: ReferralCodeGenerator,
        settings: ReconciliationSettings,
        analytics: AnalyticsRecorder,
        telemetry: ErrorTelemetry,
    ) -> None:
        """Initialize identity reconciler.

        Args:
            directory: Account directory
            conflict_resolver: Email conflict detection
            referral_codes: Referral code generator for new accounts
            settings: Reconciliation policy (username suffixes, names)
            analytics: Analytics sink for signup events
            telemetry: Sink for unexpected faults
        """
        self.directory = directory
        self.conflict_resolver = conflict_resolver
        self.referral_codes = referral_codes
        self.settings = settings
        self.analytics = analytics
        self.telemetry = telemetry

    async def reconcile(
        self,
        assertion: ProviderAssertion,
        session_account: Optional[Account] = None,
        session: Optional[SignupSession] = None,
    ) -> ReconciliationOutcome:
        """Reconcile one assertion.

        Never raises: conflicts, directory refusals and unexpected faults
        all come back as ``Rejected``.

        Args:
            assertion: Provider identity claim for this handshake
            session_account: Currently authenticated account, if any
            session: Request session, used by the signup branch

        Returns:
            The reconciliation outcome
        """
        session = session or DetachedSession()
        provider = assertion.provider

        with logfire.span(
            "identity_reconciler.reconcile",
            provider=provider.value,
            external_id=assertion.external_id,
            has_session=session_account is not None,
        ):
            try:
                existing = await self.directory.find_identity(
                    provider, assertion.external_id
                )
                branch = select_branch(session_account, existing)
                logfire.info(
                    "Reconciliation branch selected",
                    branch=branch.value,
                    provider=provider.value,
                    external_id=assertion.external_id,
                )

                if branch is ReconciliationBranch.LINK_CONFLICT:
                    raise ConflictRejection(
                        f"Your {provider.label} account is already linked to "
                        f"account {existing.account_id}"
                    )
                if branch is ReconciliationBranch.LINK:
                    return await self._link(assertion, session_account, existing)
                if branch is ReconciliationBranch.LOGIN:
                    return await self._login(assertion, existing)
                return await self._signup(assertion, session)

            except ConflictRejection as e:
                logfire.info(
                    "Reconciliation rejected",
                    provider=provider.value,
                    external_id=assertion.external_id,
                    reason=str(e),
                )
                return Rejected(reason=str(e), cause="conflict")
            except IntegrityRejection as e:
                logfire.warn(
                    "Directory refused reconciliation write",
                    provider=provider.value,
                    external_id=assertion.external_id,
                    constraint=e.constraint,
                )
                return Rejected(reason=AUTHENTICATION_FAILED, cause="integrity")
            except Exception as e:
                logfire.error(
                    "Unexpected reconciliation failure",
                    provider=provider.value,
                    external_id=assertion.external_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                self._capture(e)
                return Rejected(reason=str(e) or type(e).__name__, cause="fault")

    async def _link(
        self,
        assertion: ProviderAssertion,
        session_account: Account,
        existing: Optional[ExternalIdentity],
    ) -> ReconciliationOutcome:
        """Attach the identity to the session account, refreshing tokens."""
        identity = self._identity_for(assertion, session_account.id, existing)
        await self.directory.upsert_identity(identity)

        account = await self.directory.load_account(session_account.id)
        if account is None:
            logfire.warn(
                "Session account vanished while linking",
                account_id=str(session_account.id),
            )
            return Rejected(reason=MISSING_LINKED_ACCOUNT, cause="integrity")

        logfire.info(
            "External identity linked",
            account_id=str(account.id),
            provider=assertion.provider.value,
            refreshed=existing is not None and existing.is_linked_to(account.id),
        )
        return LinkedToCurrentAccount(account=account)

    async def _login(
        self, assertion: ProviderAssertion, existing: ExternalIdentity
    ) -> ReconciliationOutcome:
        """Log in the account owning the identity."""
        account = None
        if existing.account_id is not None:
            account = await self.directory.load_account(existing.account_id)
        if account is None:
            logfire.warn(
                "Linked account could not be loaded",
                identity_id=str(existing.id),
                account_id=str(existing.account_id),
            )
            return Rejected(reason=MISSING_LINKED_ACCOUNT, cause="integrity")

        await self.directory.upsert_identity(
            self._identity_for(assertion, account.id, existing)
        )

        logfire.info(
            "Existing account logged in",
            account_id=str(account.id),
            provider=assertion.provider.value,
        )
        return LoggedIn(account=account)

    async def _signup(
        self, assertion: ProviderAssertion, session: SignupSession
    ) -> ReconciliationOutcome:
        """Provision a new account from the profile."""
        profile = assertion.profile
        provider = assertion.provider

        if profile.email:
            await self.conflict_resolver.check(profile.email, provider)

        if profile.display_name is None:
            raise ValueError(f"{provider.label} profile is missing a display name")

        disambiguator = UsernameDisambiguator(self.settings.suffix_for(provider))
        username = await disambiguator.resolve(
            profile.display_handle, self._username_taken
        )
        first_name, last_name = split_display_name(profile.display_name)
        now = datetime.now(timezone.utc)

        account = Account(
            id=AccountId(uuid4()),
            username=Username(username),
            first_name=first_name,
            last_name=last_name,
            email=profile.email,
            referral_code=self.referral_codes.generate(
                profile.email or profile.display_handle
            ),
            photo_url=profile.avatar_url,
            marketing_meta=session.marketing_meta(),
            signup_provider=provider,
            created_at=now,
            updated_at=now,
        )
        identity = self._identity_for(assertion, account.id, None)

        account, _ = await self.directory.create_account_with_identity(
            account, identity
        )

        logfire.info(
            "New account created",
            account_id=str(account.id),
            username=account.username.root,
            provider=provider.value,
            external_id=assertion.external_id,
        )

        await self._after_signup(assertion, session)
        return SignedUp(account=account)

    async def _after_signup(
        self, assertion: ProviderAssertion, session: SignupSession
    ) -> None:
        """Signup side effects; their failures never change the outcome."""
        try:
            await self.analytics.record_event(
                "signup", "successful", assertion.provider.value
            )
        except Exception as e:
            logfire.warn("Signup analytics event failed", error=str(e))

        try:
            session.mark_new_signup()
        except Exception as e:
            logfire.warn("Could not flag session as new signup", error=str(e))

    async def _username_taken(self, username: str) -> bool:
        return await self.directory.count_accounts_by_username(username) > 0

    def _identity_for(
        self,
        assertion: ProviderAssertion,
        account_id: AccountId,
        existing: Optional[ExternalIdentity],
    ) -> ExternalIdentity:
        """Identity state after a successful authentication."""
        now = datetime.now(timezone.utc)
        fresh = {
            "access_token": assertion.tokens.access_token,
            "access_token_secret": assertion.tokens.access_token_secret,
            "display_handle": assertion.profile.display_handle,
            "account_id": account_id,
            "updated_at": now,
            "last_login_at": now,
        }
        if existing is not None:
            return existing.model_copy(update=fresh)
        return ExternalIdentity(
            id=ExternalIdentityId(uuid4()),
            provider=assertion.provider,
            external_id=assertion.external_id,
            created_at=now,
            **fresh,
        )

    def _capture(self, error: Exception) -> None:
        try:
            self.telemetry.capture_exception(error)
        except Exception as e:
            logfire.warn("Error telemetry capture failed", error=str(e))
