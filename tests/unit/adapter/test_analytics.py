"""Unit tests for analytics recorders."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from linkage.adapter.analytics import GoogleAnalyticsRecorder, LogfireAnalyticsRecorder
from linkage.adapter.error import AnalyticsError


def mock_http_client(**methods) -> MagicMock:
    http_client = MagicMock()
    for name, mock in methods.items():
        setattr(http_client, name, mock)
    http_client.__aenter__ = AsyncMock(return_value=http_client)
    http_client.__aexit__ = AsyncMock(return_value=False)
    return http_client


class TestGoogleAnalyticsRecorder:
    """Tests for the measurement protocol recorder."""

    @pytest.mark.asyncio
    async def test_event_is_posted_as_hit(self):
        # Arrange
        post = AsyncMock(return_value=MagicMock(status_code=200))
        recorder = GoogleAnalyticsRecorder(tracking_id="UA-1", endpoint="https://ga/c")

        with patch(
            "linkage.adapter.analytics.httpx.AsyncClient",
            return_value=mock_http_client(post=post),
        ):
            # Act
            await recorder.send("signup", "successful", "twitter")

        # Assert
        url = post.await_args.args[0]
        data = post.await_args.kwargs["data"]
        assert url == "https://ga/c"
        assert data["tid"] == "UA-1"
        assert (data["t"], data["ec"], data["ea"], data["el"]) == (
            "event",
            "signup",
            "successful",
            "twitter",
        )

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        post = AsyncMock(return_value=MagicMock(status_code=503))
        recorder = GoogleAnalyticsRecorder(tracking_id="UA-1")

        with patch(
            "linkage.adapter.analytics.httpx.AsyncClient",
            return_value=mock_http_client(post=post),
        ):
            with pytest.raises(AnalyticsError, match="503"):
                await recorder.send("signup", "successful", "twitter")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        post = AsyncMock(side_effect=httpx.ConnectError("boom"))
        recorder = GoogleAnalyticsRecorder(tracking_id="UA-1")

        with patch(
            "linkage.adapter.analytics.httpx.AsyncClient",
            return_value=mock_http_client(post=post),
        ):
            with pytest.raises(AnalyticsError):
                await recorder.send("signup", "successful", "twitter")


    @pytest.mark.asyncio
    async def test_record_event_does_not_wait_for_delivery(self):
        # Arrange - the collect endpoint hangs until released
        released = asyncio.Event()

        async def slow_post(*args, **kwargs):
            await released.wait()
            return MagicMock(status_code=200)

        post = AsyncMock(side_effect=slow_post)
        recorder = GoogleAnalyticsRecorder(tracking_id="UA-1")

        with patch(
            "linkage.adapter.analytics.httpx.AsyncClient",
            return_value=mock_http_client(post=post),
        ):
            # Act
            await asyncio.wait_for(
                recorder.record_event("signup", "successful", "twitter"), timeout=1
            )

            # Assert - returned while the hit is still in flight
            assert not released.is_set()
            released.set()
            await recorder.aclose()

        post.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_background_failure_is_not_raised(self):
        post = AsyncMock(return_value=MagicMock(status_code=503))
        recorder = GoogleAnalyticsRecorder(tracking_id="UA-1")

        with patch(
            "linkage.adapter.analytics.httpx.AsyncClient",
            return_value=mock_http_client(post=post),
        ):
            await recorder.record_event("signup", "successful", "twitter")
            await recorder.aclose()

        post.assert_awaited_once()
        assert not recorder._pending


class TestLogfireAnalyticsRecorder:
    """Tests for the logfire recorder."""

    @pytest.mark.asyncio
    async def test_record_event_does_not_raise(self):
        await LogfireAnalyticsRecorder().record_event("signup", "successful", "github")
