"""Base model for directory entities."""

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Base class for accounts, identities and reconciliation outcomes.

    Entities are immutable; updates go through ``model_copy(update=...)``.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
    )
