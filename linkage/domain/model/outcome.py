"""Reconciliation outcomes.

Every reconciliation ends in exactly one of these. Callers switch on
``kind`` to decide between issuing a session and showing an error.
"""

from typing import Annotated, Literal, Union

from pydantic import Field

from linkage.domain.model.account import Account
from linkage.domain.model.common import DomainModel

RejectionCause = Literal["conflict", "integrity", "fault"]


class LinkedToCurrentAccount(DomainModel):
    """External identity attached to the already authenticated account."""

    kind: Literal["linked"] = "linked"
    account: Account


class LoggedIn(DomainModel):
    """Existing account logged in through its linked identity."""

    kind: Literal["logged_in"] = "logged_in"
    account: Account


class SignedUp(DomainModel):
    """New account provisioned from the provider profile."""

    kind: Literal["signed_up"] = "signed_up"
    account: Account


class Rejected(DomainModel):
    """Reconciliation refused.

    ``cause`` separates user-actionable conflicts, directory integrity
    refusals and unexpected faults; ``reason`` is safe to show the user.
    """

    kind: Literal["rejected"] = "rejected"
    reason: str
    cause: RejectionCause = "conflict"


ReconciliationOutcome = Annotated[
    Union[LinkedToCurrentAccount, LoggedIn, SignedUp, Rejected],
    Field(discriminator="kind"),
]

AuthenticatedOutcome = Union[LinkedToCurrentAccount, LoggedIn, SignedUp]
