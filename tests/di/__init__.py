"""Mock providers for testing."""

from .persistence import MockPersistenceProvider
from .telemetry import MockTelemetryProvider
from .twitter import MockTwitterProvider
from .container import build_test_container

__all__ = [
    "MockPersistenceProvider",
    "MockTelemetryProvider",
    "MockTwitterProvider",
    "build_test_container",
]
