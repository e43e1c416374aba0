"""Twitter OAuth adapter."""

from .client import (
    MockTwitterOAuthClient,
    RealTwitterOAuthClient,
    TwitterOAuthClient,
    TwitterOAuthError,
)

__all__ = [
    "MockTwitterOAuthClient",
    "RealTwitterOAuthClient",
    "TwitterOAuthClient",
    "TwitterOAuthError",
]
