"""Adapter layer errors."""


class AdapterError(Exception):
    """Base adapter error."""

    pass


class ProviderError(AdapterError):
    """External provider error."""

    pass


class AnalyticsError(AdapterError):
    """Analytics sink error."""

    pass
