"""Twitter infrastructure providers."""

from dishka import Scope, provide

from linkage.adapter.twitter.client import (
    RealTwitterOAuthClient,
    TwitterOAuthClient,
)
from linkage.config import Settings
from linkage.util.di.base import ProviderBase
from linkage.util.error import ConfigurationError


class TwitterProvider(ProviderBase):
    """Twitter component base."""

    __mock_component__ = "twitter"


class ProdTwitterProvider(TwitterProvider):
    """Production Twitter provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_twitter_oauth_client(self, settings: Settings) -> TwitterOAuthClient:
        """Provide Twitter OAuth client.

        Returns:
            Twitter OAuth 2.0 client

        Raises:
            ConfigurationError: If Twitter OAuth credentials are not configured
        """
        if not settings.auth.twitter.client_id:
            raise ConfigurationError(
                "AUTH__TWITTER__CLIENT_ID", "required for Twitter sign-in"
            )
        if not settings.auth.twitter.client_secret:
            raise ConfigurationError(
                "AUTH__TWITTER__CLIENT_SECRET", "required for Twitter sign-in"
            )

        return RealTwitterOAuthClient(
            client_id=settings.auth.twitter.client_id,
            client_secret=settings.auth.twitter.client_secret,
            redirect_uri=settings.auth.twitter_callback_url,
        )
