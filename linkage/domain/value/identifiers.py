"""Strongly typed identifiers for directory entities."""

from typing import NewType
from uuid import UUID

AccountId = NewType("AccountId", UUID)
ExternalIdentityId = NewType("ExternalIdentityId", UUID)
