"""In-memory repository implementations for testing."""

from .directory import InMemoryAccountDirectory

__all__ = [
    "InMemoryAccountDirectory",
]
