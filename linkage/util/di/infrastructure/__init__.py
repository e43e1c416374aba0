"""Infrastructure providers.

Implementations are imported here so ``__subclasses__()`` sees them.
"""

from .oauth import OAuthAggregatorProvider
from .persistence import PersistenceProvider, ProdPersistenceProvider
from .telemetry import ProdTelemetryProvider, TelemetryProvider
from .twitter import ProdTwitterProvider, TwitterProvider

__all__ = [
    "OAuthAggregatorProvider",
    "PersistenceProvider",
    "ProdPersistenceProvider",
    "ProdTelemetryProvider",
    "ProdTwitterProvider",
    "TelemetryProvider",
    "TwitterProvider",
]
