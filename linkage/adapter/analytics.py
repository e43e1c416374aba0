"""Signup analytics recorders."""

import asyncio
import uuid

import httpx
import logfire

from linkage.adapter.error import AnalyticsError
from linkage.domain.service.collaborators import AnalyticsRecorder


class LogfireAnalyticsRecorder(AnalyticsRecorder):
    """Record analytics events as structured logfire entries."""

    async def record_event(self, category: str, action: str, label: str) -> None:
        """Log the event; never fails on its own."""
        logfire.info(
            "Analytics event",
            category=category,
            action=action,
            label=label,
        )


class GoogleAnalyticsRecorder(AnalyticsRecorder):
    """Send events through the Google Analytics measurement protocol.

    ``record_event`` only schedules the hit; delivery runs as a background
    task so a slow collect endpoint never delays the signup response.
    Delivery failures are logged. ``aclose`` waits for hits still in flight.
    """

    def __init__(
        self,
        tracking_id: str,
        endpoint: str = "https://www.google-analytics.com/collect",
        timeout: float = 5.0,
    ) -> None:
        """Initialize Google Analytics recorder.

        Args:
            tracking_id: Property id ("UA-...")
            endpoint: Measurement protocol collect endpoint
            timeout: Request timeout in seconds
        """
        self.tracking_id = tracking_id
        self.endpoint = endpoint
        self.timeout = timeout
        self._pending: set[asyncio.Task[None]] = set()

    async def record_event(self, category: str, action: str, label: str) -> None:
        task = asyncio.create_task(self.send(category, action, label))
        self._pending.add(task)
        task.add_done_callback(self._delivered)

    def _delivered(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logfire.warn("Analytics event dropped", error=str(error))

    async def aclose(self) -> None:
        """Wait for scheduled hits to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def send(self, category: str, action: str, label: str) -> None:
        """Post one event hit.

        Raises:
            AnalyticsError: If the hit could not be delivered
        """
        data = {
            "v": "1",
            "tid": self.tracking_id,
            "cid": str(uuid.uuid4()),  # Anonymous client id per hit
            "t": "event",
            "ec": category,
            "ea": action,
            "el": label,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.endpoint, data=data, timeout=self.timeout
                )
        except httpx.HTTPError as e:
            raise AnalyticsError(f"HTTP error sending analytics event: {e}") from e

        if response.status_code >= 400:
            raise AnalyticsError(f"Analytics endpoint returned {response.status_code}")

        logfire.debug(
            "Analytics event sent", category=category, action=action, label=label
        )


class InMemoryAnalyticsRecorder(AnalyticsRecorder):
    """Keep events in a list for assertions in tests."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []
        self.fail_with: Exception | None = None

    async def record_event(self, category: str, action: str, label: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.events.append((category, action, label))
