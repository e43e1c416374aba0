"""Capabilities the reconciler uses but does not own.

Analytics, error telemetry and the request session are injected rather than
reached for globally, so the decision logic runs without any I/O in tests.
"""

from abc import ABC, abstractmethod
from typing import Any


class AnalyticsRecorder(ABC):
    """Fire-and-forget analytics sink."""

    @abstractmethod
    async def record_event(self, category: str, action: str, label: str) -> None:
        """Record an analytics event.

        Args:
            category: Event category (e.g. "signup")
            action: Event action (e.g. "successful")
            label: Event label (e.g. the provider name)
        """


class ErrorTelemetry(ABC):
    """Sink for unexpected faults."""

    @abstractmethod
    def capture_exception(self, error: BaseException) -> None:
        """Report an exception that is not a modeled rejection.

        Args:
            error: The exception to report
        """


class SignupSession(ABC):
    """Per-request session state touched by a signup."""

    @abstractmethod
    def marketing_meta(self) -> dict[str, Any] | None:
        """Marketing attribution captured earlier in the session."""

    @abstractmethod
    def mark_new_signup(self) -> None:
        """Flag the session as belonging to a freshly created account."""


class DetachedSession(SignupSession):
    """Request-local session state.

    The transport reads `is_new_signup` back after reconciliation and maps it
    onto its own session mechanism (cookie, redirect parameter).
    """

    def __init__(self, marketing_meta: dict[str, Any] | None = None) -> None:
        self._marketing_meta = marketing_meta
        self.is_new_signup = False

    def marketing_meta(self) -> dict[str, Any] | None:
        return self._marketing_meta

    def mark_new_signup(self) -> None:
        self.is_new_signup = True
