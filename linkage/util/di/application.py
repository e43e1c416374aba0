"""Application layer DI providers."""

from dishka import Scope, provide

from linkage.application.usecase.auth import LoginUseCase
from linkage.domain.repository import AccountDirectory
from linkage.domain.service import AuthService, IdentityReconciler, JWTService
from linkage.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_login_use_case(
        self,
        auth_service: AuthService,
        jwt_service: JWTService,
        identity_reconciler: IdentityReconciler,
        directory: AccountDirectory,
    ) -> LoginUseCase:
        """Provide login use case."""
        return LoginUseCase(
            auth_service=auth_service,
            jwt_service=jwt_service,
            identity_reconciler=identity_reconciler,
            directory=directory,
        )
