"""PostgreSQL repository implementations."""

from linkage.persistence.repository.directory import PostgresAccountDirectory

__all__ = [
    "PostgresAccountDirectory",
]
