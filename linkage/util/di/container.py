"""Production container."""

from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from linkage.util.di import PROVIDERS, get_provider


def create_container() -> AsyncContainer:
    """Build the container with every production implementation."""
    providers = [get_provider(base)() for base in PROVIDERS]
    return make_async_container(*providers, FastapiProvider())


def setup_di(app: FastAPI, container: AsyncContainer) -> None:
    """Attach ``container`` to ``app`` and close it on shutdown."""
    setup_dishka(container, app)
