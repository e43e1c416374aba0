"""Domain model entities for Linkage."""

from linkage.domain.model.account import Account
from linkage.domain.model.external_identity import ExternalIdentity
from linkage.domain.model.outcome import (
    AuthenticatedOutcome,
    LinkedToCurrentAccount,
    LoggedIn,
    ReconciliationOutcome,
    Rejected,
    RejectionCause,
    SignedUp,
)

__all__ = [
    "Account",
    "ExternalIdentity",
    "AuthenticatedOutcome",
    "LinkedToCurrentAccount",
    "LoggedIn",
    "ReconciliationOutcome",
    "Rejected",
    "RejectionCause",
    "SignedUp",
]
