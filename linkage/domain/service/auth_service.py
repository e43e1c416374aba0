"""Authentication domain service.

Routes the two legs of an OAuth handshake to the client registered for the
provider. The second leg yields a ProviderAssertion for the reconciler.
"""

from abc import ABC, abstractmethod

import logfire

from linkage.domain.value import AuthProvider, ProviderAssertion

from .base import Service


class OAuthClient(ABC):
    """One provider's side of the OAuth handshake."""

    @abstractmethod
    async def initiate_authorization(self, state: str) -> str:
        """Return the provider URL the browser should be sent to."""

    @abstractmethod
    async def complete_authorization(self, code: str, state: str) -> ProviderAssertion:
        """Finish the handshake started with ``state``.

        Raises:
            ProviderError: If the provider refuses or cannot be reached
        """


class AuthService(Service):
    """Domain service routing OAuth handshakes to provider clients."""

    def __init__(self, oauth_clients: dict[AuthProvider, OAuthClient]) -> None:
        self.oauth_clients = oauth_clients

    def _client_for(self, provider: AuthProvider) -> OAuthClient:
        """Raises ValueError for providers without a configured client."""
        client = self.oauth_clients.get(provider)
        if client is None:
            raise ValueError(f"Unsupported provider: {provider.value}")
        return client

    async def initiate_login(self, provider: AuthProvider, state: str) -> str:
        return await self._client_for(provider).initiate_authorization(state)

    async def complete_login(
        self, provider: AuthProvider, code: str, state: str
    ) -> ProviderAssertion:
        """Exchange the callback code for a provider assertion.

        Raises:
            ValueError: If provider not supported
            ProviderError: If the handshake fails
        """
        with logfire.span("auth_service.complete_login", provider=provider.value):
            return await self._client_for(provider).complete_authorization(
                code, state
            )
