"""Session token domain service."""

import logfire

from linkage.config import AuthSettings
from linkage.domain.model import Account
from linkage.domain.value import AccountId
from linkage.util.jwt import (
    SessionClaims,
    SessionTokenError,
    decode_session_token,
    encode_session_token,
)

from .base import Service


class JWTService(Service):
    """Issue and read the session token naming the session principal."""

    def __init__(self, auth_settings: AuthSettings) -> None:
        self.auth_settings = auth_settings

    def create_token(self, account: Account) -> str:
        """Create a session token for an account.

        Args:
            account: Account that now owns the browser session

        Returns:
            Signed JWT
        """
        token = encode_session_token(
            account.id, account.username.root, self.auth_settings
        )
        logfire.debug("Session token issued", account_id=str(account.id))
        return token

    def read_claims(self, token: str) -> SessionClaims:
        """Verify a session token.

        Raises:
            SessionTokenError: If the token cannot be trusted
        """
        return decode_session_token(token, self.auth_settings)

    def get_account_id_from_token(self, token: str | None) -> AccountId | None:
        """Resolve the session principal, or None.

        Missing, expired and forged tokens all mean "nobody is signed in".
        """
        if not token:
            return None

        try:
            claims = self.read_claims(token)
        except SessionTokenError as e:
            logfire.debug("Ignoring session token", reason=str(e))
            return None
        return AccountId(claims.account_id)
