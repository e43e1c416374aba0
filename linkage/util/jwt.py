"""Session token encoding.

The session token is an HS256 JWT whose ``sub`` claim is the account id.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from pydantic import BaseModel, Field, ValidationError

from linkage.config import AuthSettings

ISSUER = "linkage"


class SessionClaims(BaseModel):
    """Claims carried by a session token."""

    account_id: UUID = Field(alias="sub")
    username: str = Field(alias="handle")
    issued_at: datetime = Field(alias="iat")
    expires_at: datetime = Field(alias="exp")


class SessionTokenError(Exception):
    """Session token could not be trusted."""

    pass


def encode_session_token(account_id: UUID, username: str, settings: AuthSettings) -> str:
    """Sign a session token for ``account_id``, valid for the configured days."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(account_id),
        "handle": username,
        "iss": ISSUER,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expiry_days),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str, settings: AuthSettings) -> SessionClaims:
    """Verify signature, expiry and issuer, then parse the claims.

    Raises:
        SessionTokenError: If the token is expired, forged or malformed
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=ISSUER,
            options={"require": ["sub", "exp", "iat"]},
        )
        return SessionClaims.model_validate(claims)
    except jwt.ExpiredSignatureError as e:
        raise SessionTokenError("Session token has expired") from e
    except jwt.InvalidTokenError as e:
        raise SessionTokenError(f"Invalid session token: {e}") from e
    except ValidationError as e:
        raise SessionTokenError("Malformed session token claims") from e
