"""Authentication routes."""

import json
import secrets
from typing import Any
from urllib.parse import urlencode

import logfire
from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Cookie, HTTPException, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from linkage.adapter.error import ProviderError
from linkage.application.usecase.auth import LoginRequest, LoginUseCase
from linkage.config import Settings
from linkage.domain.model import Rejected
from linkage.domain.service import AuthService
from linkage.domain.value import AuthProvider

AUTH_COOKIE = "auth_token"
MARKETING_COOKIE = "marketing_meta"

# Shown instead of internal error text, which can carry SQL and provider tokens
GENERIC_FAILURE_MESSAGE = (
    "Something went wrong while signing you in. Please try again."
)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)


class InitiateLoginRequest(BaseModel):
    """Initiate login request."""

    provider: AuthProvider


class InitiateLoginResponse(BaseModel):
    """Initiate login response."""

    authorization_url: str


class LogoutResponse(BaseModel):
    """Logout response."""

    success: bool
    message: str


def parse_marketing_meta(raw: str | None) -> dict[str, Any] | None:
    """Decode the marketing attribution cookie, ignoring malformed values."""
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logfire.debug("Ignoring malformed marketing_meta cookie")
        return None
    return value if isinstance(value, dict) else None


def _public_reason(outcome: Rejected) -> str:
    """Conflict and integrity reasons are user-facing; fault reasons are not."""
    if outcome.cause == "fault":
        return GENERIC_FAILURE_MESSAGE
    return outcome.reason


def _error_redirect(settings: Settings, error: str, message: str) -> RedirectResponse:
    query = urlencode({"error": error, "message": message})
    return RedirectResponse(
        url=f"{settings.api.frontend_url}/auth/error?{query}",
        status_code=status.HTTP_302_FOUND,
    )


def _cookie_options(settings: Settings) -> dict[str, Any]:
    # Cross-site cookies in production need SameSite=None, which requires Secure
    is_production = settings.environment == "production"
    return {
        "domain": settings.auth.cookie_domain,
        "secure": is_production,
        "samesite": "none" if is_production else "lax",
        "path": "/",
    }


@router.post("/login", response_model=InitiateLoginResponse)
async def initiate_login(
    request: InitiateLoginRequest,
    auth_service: FromDishka[AuthService],
) -> InitiateLoginResponse:
    """Initiate OAuth login flow.

    Example:
        POST /auth/login
        {"provider": "twitter"}

        Response:
        {"authorization_url": "https://twitter.com/i/oauth2/authorize?..."}
    """
    state = secrets.token_urlsafe(32)

    try:
        auth_url = await auth_service.initiate_login(request.provider, state)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProviderError as e:
        logfire.error(
            "Login initiation failed", provider=request.provider.value, error=str(e)
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to initiate login: {e}",
        )

    return InitiateLoginResponse(authorization_url=auth_url)


@router.get("/callback/twitter")
async def twitter_callback(
    code: str,
    state: str,
    login_use_case: FromDishka[LoginUseCase],
    settings: FromDishka[Settings],
    auth_token: str | None = Cookie(default=None),
    marketing_meta: str | None = Cookie(default=None),
):
    """Handle Twitter OAuth callback.

    Signs in, signs up or links the Twitter identity to the logged-in
    account, then redirects to the frontend with a fresh ``auth_token``
    cookie. Rejections redirect to ``/auth/error``.

    Example:
        GET /auth/callback/twitter?code=abc123&state=xyz789

        Redirects to: http://localhost:3000/?new_signup=1
        Sets cookie: auth_token
    """
    return await _handle_oauth_callback(
        provider=AuthProvider.TWITTER,
        code=code,
        state=state,
        session_token=auth_token,
        marketing_meta=marketing_meta,
        login_use_case=login_use_case,
        settings=settings,
    )


async def _handle_oauth_callback(
    provider: AuthProvider,
    code: str,
    state: str,
    session_token: str | None,
    marketing_meta: str | None,
    login_use_case: LoginUseCase,
    settings: Settings,
) -> RedirectResponse:
    """Shared OAuth callback handler for all providers."""
    logfire.info(
        "OAuth callback received",
        provider=provider.value,
        has_session=session_token is not None,
    )

    try:
        login_response = await login_use_case.execute(
            LoginRequest(
                provider=provider,
                code=code,
                state=state,
                session_token=session_token,
                marketing_meta=parse_marketing_meta(marketing_meta),
            )
        )
    except ProviderError as e:
        logfire.error("OAuth handshake failed", provider=provider.value, error=str(e))
        return _error_redirect(settings, "auth_failed", str(e))
    except Exception as e:
        logfire.exception("Unexpected error during OAuth callback", error=str(e))
        return _error_redirect(settings, "unexpected", GENERIC_FAILURE_MESSAGE)

    outcome = login_response.outcome
    if isinstance(outcome, Rejected):
        return _error_redirect(settings, outcome.cause, _public_reason(outcome))

    redirect_url = settings.api.frontend_url
    if login_response.is_new_signup:
        redirect_url = f"{redirect_url}/?new_signup=1"

    redirect_response = RedirectResponse(
        url=redirect_url, status_code=status.HTTP_302_FOUND
    )
    # Cookies must be set on the returned response, not an injected one
    redirect_response.set_cookie(
        key=AUTH_COOKIE,
        value=login_response.token,
        httponly=True,
        max_age=settings.auth.jwt_expiry_days * 24 * 60 * 60,
        **_cookie_options(settings),
    )
    if login_response.is_new_signup:
        redirect_response.delete_cookie(
            key=MARKETING_COOKIE, path="/", domain=settings.auth.cookie_domain
        )

    logfire.info(
        "Login completed",
        outcome=outcome.kind,
        account_id=str(outcome.account.id),
        provider=provider.value,
    )
    return redirect_response


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    settings: FromDishka[Settings],
) -> LogoutResponse:
    """Logout by clearing the authentication cookie."""
    options = _cookie_options(settings)
    response.delete_cookie(
        key=AUTH_COOKIE, path=options["path"], domain=options["domain"]
    )
    return LogoutResponse(success=True, message="Successfully logged out")
