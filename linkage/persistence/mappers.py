"""Mappers for converting between database rows and domain models.

Domain models are immutable Pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM mapping.
"""

from typing import Any, Dict
from uuid import UUID

from linkage.domain.model import Account, ExternalIdentity
from linkage.domain.value import (
    AccountId,
    AuthProvider,
    ExternalIdentityId,
    ReferralCode,
    Username,
)


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def row_to_account(row: Dict[str, Any]) -> Account:
    """Convert database row to Account domain model.

    Args:
        row: Database row as dict

    Returns:
        Account domain model
    """
    signup_provider = row.get("signup_provider")
    return Account(
        id=AccountId(_uuid(row["id"])),
        username=Username(row["username"]),
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        email=row.get("email"),
        referral_code=ReferralCode(row["referral_code"]),
        photo_url=row.get("photo_url"),
        marketing_meta=row.get("marketing_meta"),
        signup_provider=AuthProvider(signup_provider) if signup_provider else None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def account_to_dict(account: Account) -> Dict[str, Any]:
    """Convert Account domain model to database dict.

    Args:
        account: Account domain model

    Returns:
        Dict suitable for database insertion/update
    """
    return account.model_dump(mode="json") | {
        "id": account.id,
        "created_at": account.created_at,
        "updated_at": account.updated_at,
    }


def row_to_external_identity(row: Dict[str, Any]) -> ExternalIdentity:
    """Convert database row to ExternalIdentity domain model.

    Args:
        row: Database row as dict

    Returns:
        ExternalIdentity domain model
    """
    account_id = row.get("account_id")
    return ExternalIdentity(
        id=ExternalIdentityId(_uuid(row["id"])),
        provider=AuthProvider(row["provider"]),
        external_id=row["external_id"],
        access_token=row["access_token"],
        access_token_secret=row.get("access_token_secret"),
        display_handle=row["display_handle"],
        account_id=AccountId(_uuid(account_id)) if account_id else None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_login_at=row.get("last_login_at"),
    )


def external_identity_to_dict(identity: ExternalIdentity) -> Dict[str, Any]:
    """Convert ExternalIdentity domain model to database dict.

    Args:
        identity: ExternalIdentity domain model

    Returns:
        Dict suitable for database insertion/update
    """
    return identity.model_dump(mode="json") | {
        "id": identity.id,
        "account_id": identity.account_id,
        "created_at": identity.created_at,
        "updated_at": identity.updated_at,
        "last_login_at": identity.last_login_at,
    }
