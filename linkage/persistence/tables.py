"""SQLAlchemy table definitions for the account directory.

These tables are used with manual row mapping (see mappers.py).
They match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

metadata = MetaData()

# ============================================================================
# ACCOUNTS TABLE
# ============================================================================
accounts_table = Table(
    "accounts",
    metadata,
    Column("id", UUID, primary_key=True, server_default="uuid_generate_v4()"),
    Column("username", String(255), nullable=False),
    Column("first_name", String(255), nullable=False, server_default=""),
    Column("last_name", String(255), nullable=False, server_default=""),
    Column("email", String(255), nullable=True),
    Column("referral_code", String(64), nullable=False),
    Column("photo_url", Text, nullable=True),
    Column("marketing_meta", JSONB, nullable=True),
    Column("signup_provider", String(50), nullable=True),  # NULL: not an OAuth signup
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    UniqueConstraint("username", name="uq_accounts_username"),
    UniqueConstraint("referral_code", name="uq_accounts_referral_code"),
)

Index("idx_accounts_email", accounts_table.c.email)

# Two concurrent provider signups for one email must not both commit
Index(
    "uq_accounts_signup_email",
    accounts_table.c.email,
    unique=True,
    postgresql_where=accounts_table.c.signup_provider.isnot(None)
    & accounts_table.c.email.isnot(None),
)

# ============================================================================
# EXTERNAL IDENTITIES TABLE
# ============================================================================
external_identities_table = Table(
    "external_identities",
    metadata,
    Column("id", UUID, primary_key=True, server_default="uuid_generate_v4()"),
    Column("provider", String(50), nullable=False),  # 'twitter', 'github', ...
    Column("external_id", String(255), nullable=False),
    Column("access_token", Text, nullable=False),
    Column("access_token_secret", Text, nullable=True),  # OAuth 1.0a only
    Column("display_handle", String(255), nullable=False),
    Column(
        "account_id",
        UUID,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column("last_login_at", TIMESTAMP(timezone=True), nullable=True),
    UniqueConstraint("provider", "external_id", name="uq_provider_external_id"),
)

Index("idx_external_identities_account_id", external_identities_table.c.account_id)
