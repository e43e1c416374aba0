"""Account aggregate root.

Accounts are the long-lived root of the directory. External identities come
and go per provider; the account outlives all of them.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from linkage.domain.model.common import DomainModel
from linkage.domain.value import AccountId, AuthProvider, ReferralCode, Username


class Account(DomainModel):
    """Directory account.

    Owns zero or one external identity per provider. Only the signup branch
    of the reconciler creates accounts.
    """

    id: AccountId
    username: Username
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    referral_code: ReferralCode
    photo_url: Optional[str] = None
    marketing_meta: Optional[dict[str, Any]] = None
    signup_provider: Optional[AuthProvider] = None  # None for non-OAuth signups
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
