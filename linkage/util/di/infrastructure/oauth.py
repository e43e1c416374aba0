"""Provider registry for the auth service."""

from dishka import Scope, provide

from linkage.adapter.twitter.client import TwitterOAuthClient
from linkage.domain.service.auth_service import OAuthClient
from linkage.domain.value import AuthProvider
from linkage.util.di.base import ProviderBase


class OAuthAggregatorProvider(ProviderBase):
    """Collects the configured OAuth clients by provider.

    Providers missing from the mapping are answered with "Unsupported
    provider" by the auth service.
    """

    @provide(scope=Scope.APP)
    def get_oauth_clients(
        self, twitter: TwitterOAuthClient
    ) -> dict[AuthProvider, OAuthClient]:
        return {AuthProvider.TWITTER: twitter}
