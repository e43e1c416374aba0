"""PostgreSQL implementation of the account directory."""

from typing import Optional

from sqlalchemy import exists, func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkage.domain.error import IntegrityRejection
from linkage.domain.model import Account, ExternalIdentity
from linkage.domain.repository import AccountDirectory
from linkage.domain.value import AccountId, AuthProvider
from linkage.persistence.mappers import (
    account_to_dict,
    external_identity_to_dict,
    row_to_account,
    row_to_external_identity,
)
from linkage.persistence.tables import accounts_table, external_identities_table


def _constraint_name(error: IntegrityError) -> str:
    """Best-effort name of the violated constraint (asyncpg exposes it)."""
    orig = getattr(error, "orig", None)
    name = getattr(orig, "constraint_name", None) or getattr(
        getattr(orig, "__cause__", None), "constraint_name", None
    )
    return name or "unknown"


class PostgresAccountDirectory(AccountDirectory):
    """PostgreSQL implementation of AccountDirectory."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize directory with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_identity(
        self, provider: AuthProvider, external_id: str
    ) -> Optional[ExternalIdentity]:
        """Find an identity by provider and provider-side id.

        Args:
            provider: Identity provider
            external_id: Account id on the provider

        Returns:
            ExternalIdentity if found, None otherwise
        """
        stmt = select(external_identities_table).where(
            external_identities_table.c.provider == provider.value,
            external_identities_table.c.external_id == external_id,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_external_identity(dict(row)) if row else None

    async def find_accounts_by_email(
        self, email: str, without_provider: Optional[AuthProvider] = None
    ) -> list[Account]:
        """Find accounts with this email.

        Args:
            email: Email to match exactly
            without_provider: Skip accounts holding an identity for this provider

        Returns:
            Matching accounts, no particular order
        """
        stmt = select(accounts_table).where(accounts_table.c.email == email)
        if without_provider is not None:
            linked = exists().where(
                external_identities_table.c.account_id == accounts_table.c.id,
                external_identities_table.c.provider == without_provider.value,
            )
            stmt = stmt.where(~linked)

        result = await self.session.execute(stmt)
        return [row_to_account(dict(row)) for row in result.mappings().all()]

    async def count_accounts_by_username(self, username: str) -> int:
        """Count accounts owning this exact username.

        Args:
            username: Username to look up

        Returns:
            Number of matching accounts
        """
        stmt = (
            select(func.count())
            .select_from(accounts_table)
            .where(accounts_table.c.username == username)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def create_account_with_identity(
        self, account: Account, identity: ExternalIdentity
    ) -> tuple[Account, ExternalIdentity]:
        """Create account and identity inside one SAVEPOINT.

        A constraint violation rolls back both inserts and leaves the outer
        request transaction usable.

        Args:
            account: Account to create
            identity: Identity to create

        Returns:
            The stored account and identity

        Raises:
            IntegrityRejection: If a uniqueness constraint is violated
        """
        linked = identity.model_copy(update={"account_id": account.id})
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    accounts_table.insert().values(**account_to_dict(account))
                )
                await self.session.execute(
                    external_identities_table.insert().values(
                        **external_identity_to_dict(linked)
                    )
                )
        except IntegrityError as e:
            raise IntegrityRejection(_constraint_name(e)) from e

        return account, linked

    async def upsert_identity(self, identity: ExternalIdentity) -> ExternalIdentity:
        """Insert or refresh an identity keyed by (provider, external_id).

        The update only applies while the stored row is unlinked or already
        owned by the same account, so a concurrent link to another account
        cannot be overwritten.

        Args:
            identity: Identity carrying the desired state

        Returns:
            The stored identity

        Raises:
            IntegrityRejection: If the identity is linked to another account or
                the account it points at does not exist
        """
        values = external_identity_to_dict(identity)
        stmt = insert(external_identities_table).values(**values)
        table = external_identities_table
        stmt = stmt.on_conflict_do_update(
            constraint="uq_provider_external_id",
            set_={
                "access_token": stmt.excluded.access_token,
                "access_token_secret": stmt.excluded.access_token_secret,
                "display_handle": stmt.excluded.display_handle,
                "account_id": func.coalesce(
                    stmt.excluded.account_id, table.c.account_id
                ),
                "updated_at": stmt.excluded.updated_at,
                "last_login_at": stmt.excluded.last_login_at,
            },
            where=or_(
                table.c.account_id.is_(None),
                stmt.excluded.account_id.is_(None),
                table.c.account_id == stmt.excluded.account_id,
            ),
        ).returning(*table.c)

        try:
            async with self.session.begin_nested():
                result = await self.session.execute(stmt)
                row = result.mappings().first()
        except IntegrityError as e:
            raise IntegrityRejection(_constraint_name(e)) from e

        if row is None:
            raise IntegrityRejection(
                "uq_provider_external_id",
                f"{identity.provider.value}:{identity.external_id} is linked elsewhere",
            )
        return row_to_external_identity(dict(row))

    async def load_account(self, account_id: AccountId) -> Optional[Account]:
        """Load an account by id.

        Args:
            account_id: Account ID to look up

        Returns:
            Account if found, None otherwise
        """
        stmt = select(accounts_table).where(accounts_table.c.id == account_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_account(dict(row)) if row else None
