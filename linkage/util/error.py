"""Errors raised while wiring the application."""


class ConfigurationError(Exception):
    """A required setting is missing or unusable."""

    def __init__(self, setting: str, message: str) -> None:
        self.setting = setting
        super().__init__(f"{setting}: {message}")


class DependencyInjectionError(Exception):
    """No provider implements the requested component."""

    pass
