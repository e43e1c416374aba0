"""External identity entity.

Binds an account on a third-party provider to a directory account.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from linkage.domain.model.common import DomainModel
from linkage.domain.value import AccountId, AuthProvider, ExternalIdentityId


class ExternalIdentity(DomainModel):
    """Provider identity, unique per (provider, external_id).

    ``account_id`` stays empty until the identity is linked. Tokens are
    refreshed on every successful authentication; records are never deleted
    by reconciliation.
    """

    id: ExternalIdentityId
    provider: AuthProvider
    external_id: str
    access_token: str
    access_token_secret: Optional[str] = None
    display_handle: str
    account_id: Optional[AccountId] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    last_login_at: Optional[datetime] = None

    def is_linked_to(self, account_id: AccountId) -> bool:
        """Check whether this identity belongs to the given account."""
        return self.account_id == account_id

    def is_claimable_by(self, account_id: AccountId) -> bool:
        """Unlinked identities, or ones already owned, can be (re)linked."""
        return self.account_id is None or self.account_id == account_id
