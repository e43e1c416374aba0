"""initial_schema

Create the account directory schema:
- Accounts (username, referral code, signup attribution)
- External identities (one row per provider account, optionally linked)

Revision ID: 3c1f0a9d2b47
Revises:
Create Date: 2026-10-19 10:12:44.381205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d2b47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ========================================================================
    # ACCOUNTS table
    # ========================================================================
    op.create_table(
        "accounts",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("referral_code", sa.String(64), nullable=False),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("marketing_meta", postgresql.JSONB(), nullable=True),
        sa.Column("signup_provider", sa.String(50), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_accounts_username"),
        sa.UniqueConstraint("referral_code", name="uq_accounts_referral_code"),
    )
    op.create_index("idx_accounts_email", "accounts", ["email"])
    op.create_index(
        "uq_accounts_signup_email",
        "accounts",
        ["email"],
        unique=True,
        postgresql_where=sa.text("signup_provider IS NOT NULL AND email IS NOT NULL"),
    )

    # ========================================================================
    # EXTERNAL_IDENTITIES table
    # ========================================================================
    op.create_table(
        "external_identities",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("provider", sa.String(50), nullable=False),  # 'twitter', ...
        sa.Column("external_id", sa.String(255), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("access_token_secret", sa.Text(), nullable=True),
        sa.Column("display_handle", sa.String(255), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("last_login_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "provider", "external_id", name="uq_provider_external_id"
        ),
    )
    op.create_index(
        "idx_external_identities_account_id", "external_identities", ["account_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(
        "idx_external_identities_account_id", table_name="external_identities"
    )
    op.drop_table("external_identities")

    op.drop_index("uq_accounts_signup_email", table_name="accounts")
    op.drop_index("idx_accounts_email", table_name="accounts")
    op.drop_table("accounts")
