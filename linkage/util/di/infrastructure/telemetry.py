"""Analytics and error telemetry providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide

from linkage.adapter.analytics import GoogleAnalyticsRecorder, LogfireAnalyticsRecorder
from linkage.adapter.telemetry import LogfireErrorTelemetry
from linkage.config import Settings
from linkage.domain.service import AnalyticsRecorder, ErrorTelemetry
from linkage.util.di.base import ProviderBase


class TelemetryProvider(ProviderBase):
    """Telemetry component base."""

    __mock_component__ = "telemetry"


class ProdTelemetryProvider(TelemetryProvider):
    """Production telemetry provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_analytics_recorder(
        self, settings: Settings
    ) -> AsyncIterator[AnalyticsRecorder]:
        """Provide analytics recorder.

        Events go to Google Analytics when a tracking id is configured and
        to logfire otherwise. Hits still in flight are awaited on shutdown.
        """
        if not settings.analytics.tracking_id:
            yield LogfireAnalyticsRecorder()
            return

        recorder = GoogleAnalyticsRecorder(
            tracking_id=settings.analytics.tracking_id,
            endpoint=settings.analytics.endpoint,
            timeout=settings.analytics.timeout_seconds,
        )
        yield recorder
        await recorder.aclose()

    @provide(scope=Scope.APP)
    def get_error_telemetry(self) -> ErrorTelemetry:
        """Provide error telemetry sink."""
        return LogfireErrorTelemetry()
