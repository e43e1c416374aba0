"""Twitter OAuth 2.0 client implementation.

Implements OAuth 2.0 with PKCE and decodes the Twitter user into a
provider assertion.
"""

import hashlib
import secrets
import time
from base64 import urlsafe_b64encode
from typing import Any
from urllib.parse import urlencode

import httpx
import logfire

from linkage.adapter.error import ProviderError
from linkage.domain.service.auth_service import OAuthClient
from linkage.domain.value import (
    AuthProvider,
    ExternalProfile,
    ProviderAssertion,
    ProviderTokens,
)

# Twitter serves a 48x48 thumbnail by default
_THUMBNAIL_SUFFIX = "_normal"
_FULL_SIZE_SUFFIX = "_400x400"


def upscale_avatar_url(url: str | None) -> str | None:
    """Swap Twitter's thumbnail avatar URL for the 400x400 variant."""
    if not url:
        return None
    return url.replace(_THUMBNAIL_SUFFIX, _FULL_SIZE_SUFFIX)


def profile_from_user(user_info: dict[str, Any]) -> ExternalProfile:
    """Decode a Twitter API v2 user object.

    The numeric id is the permanent identifier; the handle can be renamed.
    """
    return ExternalProfile(
        external_id=str(user_info["id"]),
        display_handle=user_info["username"],
        display_name=user_info.get("name"),
        email=user_info.get("confirmed_email"),  # Only with the users.email scope
        avatar_url=upscale_avatar_url(user_info.get("profile_image_url")),
        raw_attributes=user_info,
    )


class TwitterOAuthError(ProviderError):
    """Twitter OAuth error."""

    pass


class TwitterOAuthClient(OAuthClient):
    """Base class for Twitter OAuth clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealTwitterOAuthClient(TwitterOAuthClient):
    """Twitter OAuth 2.0 client with PKCE.

    Verifiers are kept in process memory between the two legs of the
    handshake, so the callback must reach the process that issued the URL.
    """

    AUTHORIZE_URL = "https://twitter.com/i/oauth2/authorize"
    TOKEN_URL = "https://api.twitter.com/2/oauth2/token"
    USER_URL = "https://api.twitter.com/2/users/me"

    SCOPES = "tweet.read users.read users.email offline.access"
    USER_FIELDS = "id,name,username,profile_image_url,verified,confirmed_email"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 30.0,
        verifier_ttl: float = 600.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.verifier_ttl = verifier_ttl
        # state -> (verifier, issued at); insertion order is issue order
        self._pkce_verifiers: dict[str, tuple[str, float]] = {}

    def _expire_verifiers(self) -> None:
        """Forget handshakes whose callback never arrived."""
        cutoff = time.monotonic() - self.verifier_ttl
        for state, (_, issued_at) in list(self._pkce_verifiers.items()):
            if issued_at >= cutoff:
                break
            del self._pkce_verifiers[state]

    @staticmethod
    def _pkce_pair() -> tuple[str, str]:
        """Return (verifier, S256 challenge), both unpadded base64url."""
        verifier = urlsafe_b64encode(secrets.token_bytes(32)).decode().rstrip("=")
        digest = hashlib.sha256(verifier.encode()).digest()
        return verifier, urlsafe_b64encode(digest).decode().rstrip("=")

    async def initiate_authorization(self, state: str) -> str:
        self._expire_verifiers()
        verifier, challenge = self._pkce_pair()
        self._pkce_verifiers.pop(state, None)
        self._pkce_verifiers[state] = (verifier, time.monotonic())

        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "scope": self.SCOPES,
                "state": state,
                "code_challenge": challenge,
                "code_challenge_method": "S256",
            }
        )
        logfire.debug(
            "Twitter authorization URL issued", redirect_uri=self.redirect_uri
        )
        return f"{self.AUTHORIZE_URL}?{query}"

    async def complete_authorization(self, code: str, state: str) -> ProviderAssertion:
        """Trade the callback code for a token and fetch the signed-in user.

        Raises:
            TwitterOAuthError: If the state is unknown or Twitter refuses
        """
        self._expire_verifiers()
        entry = self._pkce_verifiers.pop(state, None)
        if entry is None:
            raise TwitterOAuthError("Invalid state or PKCE verifier not found")
        verifier, _ = entry

        access_token = await self._exchange_code_for_token(code, verifier)
        profile = profile_from_user(await self._get_user_info(access_token))

        logfire.info(
            "Twitter handshake completed",
            external_id=profile.external_id,
            has_email=profile.email is not None,
        )
        return ProviderAssertion(
            provider=AuthProvider.TWITTER,
            profile=profile,
            tokens=ProviderTokens(access_token=access_token),
        )

    async def _exchange_code_for_token(self, code: str, code_verifier: str) -> str:
        form = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "code_verifier": code_verifier,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data=form,
                    auth=(self.client_id, self.client_secret),
                )
        except httpx.HTTPError as e:
            raise TwitterOAuthError(f"HTTP error during token exchange: {e}") from e

        return self._payload(response, "Token exchange")["access_token"]

    async def _get_user_info(self, access_token: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.USER_URL,
                    params={"user.fields": self.USER_FIELDS},
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            raise TwitterOAuthError(f"HTTP error fetching user info: {e}") from e

        return self._payload(response, "User info request")["data"]

    @staticmethod
    def _payload(response: httpx.Response, step: str) -> dict[str, Any]:
        if response.status_code != 200:
            logfire.error(
                "Twitter API call failed",
                step=step,
                status_code=response.status_code,
                body=response.text,
            )
            raise TwitterOAuthError(f"{step} failed: {response.status_code}")
        return response.json()


class MockTwitterOAuthClient(TwitterOAuthClient):
    """Mock Twitter OAuth client for testing.

    Returns a deterministic assertion without making real API calls. Tests
    can swap ``user_info`` to drive other profiles through the same flow.
    """

    def __init__(self, user_info: dict[str, Any] | None = None) -> None:
        self.user_info = user_info or {
            "id": "mocktwitter123",
            "username": "mockuser",
            "name": "Mock Twitter User",
            "confirmed_email": "mock@twitter.com",
            "profile_image_url": "https://pbs.twimg.com/profile_images/1/mock_normal.jpg",
        }

    async def initiate_authorization(self, state: str) -> str:
        """Return mock authorization URL."""
        return f"https://twitter.com/i/oauth2/authorize?state={state}&mock=true"

    async def complete_authorization(self, code: str, state: str) -> ProviderAssertion:
        """Return the mock user as an assertion."""
        return ProviderAssertion(
            provider=AuthProvider.TWITTER,
            profile=profile_from_user(self.user_info),
            tokens=ProviderTokens(access_token=f"mock-token-{code}"),
        )
