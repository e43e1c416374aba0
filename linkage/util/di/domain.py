"""Domain layer DI providers."""

from dishka import Scope, provide

from linkage.config import AuthSettings, ReconciliationSettings
from linkage.domain.repository import AccountDirectory
from linkage.domain.service import (
    AnalyticsRecorder,
    AuthService,
    ConflictResolver,
    ErrorTelemetry,
    IdentityReconciler,
    JWTService,
    OAuthClient,
    ReferralCodeGenerator,
)
from linkage.domain.value import AuthProvider
from linkage.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with the directory/session
    lifecycle. Each HTTP request gets fresh service instances with their own
    transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_auth_service(
        self, oauth_clients: dict[AuthProvider, OAuthClient]
    ) -> AuthService:
        """Provide multi-provider authentication domain service."""
        return AuthService(oauth_clients=oauth_clients)

    @provide
    def get_jwt_service(self, auth_settings: AuthSettings) -> JWTService:
        """Provide JWT token domain service."""
        return JWTService(auth_settings=auth_settings)

    @provide(scope=Scope.APP)
    def get_referral_code_generator(
        self, settings: ReconciliationSettings
    ) -> ReferralCodeGenerator:
        """Provide referral code generator."""
        return ReferralCodeGenerator(
            prefix_length=settings.referral_prefix_length,
            digest_length=settings.referral_digest_length,
        )

    @provide
    def get_conflict_resolver(
        self, directory: AccountDirectory, settings: ReconciliationSettings
    ) -> ConflictResolver:
        """Provide email conflict resolver."""
        return ConflictResolver(
            directory=directory, directory_name=settings.directory_name
        )

    @provide
    def get_identity_reconciler(
        self,
        directory: AccountDirectory,
        conflict_resolver: ConflictResolver,
        referral_codes: ReferralCodeGenerator,
        settings: ReconciliationSettings,
        analytics: AnalyticsRecorder,
        telemetry: ErrorTelemetry,
    ) -> IdentityReconciler:
        """Provide identity reconciler."""
        return IdentityReconciler(
            directory=directory,
            conflict_resolver=conflict_resolver,
            referral_codes=referral_codes,
            settings=settings,
            analytics=analytics,
            telemetry=telemetry,
        )
