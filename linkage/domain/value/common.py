"""Base classes for value objects."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, RootModel


class ValueObject(BaseModel):
    """Base class for composite value objects.

    Value objects are immutable and compared by value, not identity.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
    )


T = TypeVar("T")


class RootValueObject(RootModel[T], Generic[T]):
    """Base class for value objects that wrap a single primitive.

    The wrapped value is available as ``.root`` and ``model_dump()`` returns
    the primitive itself, which keeps usernames and referral codes cheap to
    persist and compare.
    """

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        """Return the wrapped value as a string."""
        return str(self.root)
