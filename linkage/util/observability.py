"""Logfire setup for the API process and the migration script.

Service code logs through the ``logfire`` module directly; this module only
configures it and instruments the libraries that cross process boundaries.
"""

from typing import Any

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from linkage.config import Settings

# Values that must never reach a trace: the session cookie, attribution
# cookie and provider tokens
SCRUB_PATTERNS = ["auth_token", "access_token", "marketing_meta", "code_verifier"]

# One-shot OAuth parameters on the callback query string
_REDACTED_PARAMS = frozenset({"code", "state"})


def _should_send(settings: Settings) -> bool:
    explicit = settings.observability.send_to_logfire
    if explicit is not None:
        return explicit
    return bool(settings.observability.logfire_token)


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire once per process.

    Sends to Logfire cloud when OBSERVABILITY__SEND_TO_LOGFIRE says so, or
    when a token is present and the flag is unset.
    """
    send_to_logfire = _should_send(settings)

    logfire.configure(
        service_name="linkage",
        service_version=settings.git_sha,
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        token=settings.observability.logfire_token,
        scrubbing=logfire.ScrubbingOptions(extra_patterns=SCRUB_PATTERNS),
        console=logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    )

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
    )


def redact_oauth_params(request: Any, attributes: dict[str, Any]) -> dict[str, Any]:
    """Request attribute mapper hiding the authorization code and state."""
    values = attributes.get("values")
    if not values:
        return attributes
    redacted = {
        key: "[redacted]" if key in _REDACTED_PARAMS else value
        for key, value in values.items()
    }
    return {**attributes, "values": redacted}


def instrument_app(app: FastAPI) -> None:
    """Trace inbound requests and outbound provider/analytics calls."""
    logfire.instrument_fastapi(
        app,
        capture_headers=False,
        request_attributes_mapper=redact_oauth_params,
    )
    logfire.instrument_httpx()


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace queries issued through ``engine``."""
    logfire.instrument_sqlalchemy(engine=engine.sync_engine, enable_commenter=True)
