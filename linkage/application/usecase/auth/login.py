"""Login use case."""

from typing import Any

import logfire
from pydantic import BaseModel

from linkage.application.usecase.base import BaseUseCase
from linkage.domain.model import Account, ReconciliationOutcome, Rejected
from linkage.domain.repository import AccountDirectory
from linkage.domain.service import (
    AuthService,
    DetachedSession,
    IdentityReconciler,
    JWTService,
)
from linkage.domain.value import AuthProvider


class LoginRequest(BaseModel):
    """Login request from an OAuth callback.

    ``code`` and ``state`` come from the provider redirect, the rest from the
    browser's cookies.
    """

    provider: AuthProvider
    code: str  # OAuth authorization code
    state: str  # State parameter for session verification
    session_token: str | None = None  # auth_token cookie, if logged in
    marketing_meta: dict[str, Any] | None = None  # Attribution captured pre-login


class LoginResponse(BaseModel):
    """Login response.

    ``token`` is only set when the outcome authenticates an account.
    """

    outcome: ReconciliationOutcome
    token: str | None = None
    is_new_signup: bool = False


class LoginUseCase(BaseUseCase[LoginRequest, LoginResponse]):
    """Use case for signing in, signing up or linking via an OAuth provider."""

    def __init__(
        self,
        auth_service: AuthService,
        jwt_service: JWTService,
        identity_reconciler: IdentityReconciler,
        directory: AccountDirectory,
    ) -> None:
        """Initialize login use case.

        Args:
            auth_service: Authentication domain service (handles all providers)
            jwt_service: JWT token domain service
            identity_reconciler: Reconciliation state machine
            directory: Account directory, used to resolve the session principal
        """
        self.auth_service = auth_service
        self.jwt_service = jwt_service
        self.identity_reconciler = identity_reconciler
        self.directory = directory

    async def execute(self, request: LoginRequest) -> LoginResponse:
        """Execute the login flow.

        Steps:
        1. Complete OAuth with the provider and get the assertion
        2. Resolve the session principal from the session token
        3. Reconcile the assertion with the directory
        4. Issue a session token for the authenticated account

        Args:
            request: Login request with OAuth callback parameters

        Returns:
            Login response with the outcome and, on success, a session token

        Raises:
            ProviderError: If the OAuth handshake fails
            ValueError: If the provider is not supported
        """
        assertion = await self.auth_service.complete_login(
            request.provider, request.code, request.state
        )

        logfire.info(
            "OAuth completed",
            provider=assertion.provider.value,
            external_id=assertion.external_id,
            handle=assertion.profile.display_handle,
        )

        session_account = await self._session_account(request.session_token)
        session = DetachedSession(marketing_meta=request.marketing_meta)

        outcome = await self.identity_reconciler.reconcile(
            assertion, session_account=session_account, session=session
        )

        if isinstance(outcome, Rejected):
            return LoginResponse(outcome=outcome)

        return LoginResponse(
            outcome=outcome,
            token=self.jwt_service.create_token(outcome.account),
            is_new_signup=session.is_new_signup,
        )

    async def _session_account(self, session_token: str | None) -> Account | None:
        """Load the account named by the session token, if any.

        A token for an account that no longer exists counts as no session.
        """
        account_id = self.jwt_service.get_account_id_from_token(session_token)
        if account_id is None:
            return None

        account = await self.directory.load_account(account_id)
        if account is None:
            logfire.warn(
                "Session token names a missing account", account_id=str(account_id)
            )
        return account
