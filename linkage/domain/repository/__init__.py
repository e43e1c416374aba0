"""Repository interfaces for the Linkage domain.

Interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from linkage.domain.repository.directory import AccountDirectory

__all__ = [
    "AccountDirectory",
]
