"""Dependency injection wiring.

Every provider base in ``PROVIDERS`` is either concrete (config, domain,
application) or a swappable component whose production and mock
implementations subclass it. Tests pick mocks per component, see
``tests/di``.
"""

from typing import Type

from linkage.util.di.application import ProdApplicationProvider
from linkage.util.di.base import Component, ProviderBase
from linkage.util.di.core import ProdConfigProvider
from linkage.util.di.domain import ProdDomainProvider
from linkage.util.di.infrastructure import (
    OAuthAggregatorProvider,
    PersistenceProvider,
    TelemetryProvider,
    TwitterProvider,
)
from linkage.util.error import DependencyInjectionError

PROVIDERS: list[Type[ProviderBase]] = [
    ProdConfigProvider,
    ProdDomainProvider,
    ProdApplicationProvider,
    PersistenceProvider,
    TwitterProvider,
    TelemetryProvider,
    OAuthAggregatorProvider,
]


def is_component(base: Type[ProviderBase]) -> bool:
    """True when ``base`` has swappable implementations."""
    return base.__mock_component__ is not None


def get_provider(
    base: Type[ProviderBase], use_mock: bool = False
) -> Type[ProviderBase]:
    """Resolve the provider class to instantiate for ``base``.

    Raises:
        DependencyInjectionError: If the component has no implementation
            of the requested kind
    """
    if not is_component(base):
        return base

    by_kind = {impl.__is_mock__: impl for impl in base.__subclasses__()}
    if use_mock not in by_kind:
        kind = "mock" if use_mock else "production"
        raise DependencyInjectionError(
            f"No {kind} implementation registered for {base.__mock_component__!r}"
        )
    return by_kind[use_mock]


__all__ = [
    "Component",
    "PROVIDERS",
    "ProviderBase",
    "get_provider",
    "is_component",
]
