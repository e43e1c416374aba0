#!/usr/bin/env python3
"""Upgrade the account directory schema.

Usage:
    python scripts/run_migrations.py [revision]    # defaults to head
"""

import sys

import logfire
from alembic import command
from alembic.config import Config

from linkage.config import Settings
from linkage.util.observability import configure_logfire


def main(argv: list[str]) -> int:
    settings = Settings()
    configure_logfire(settings)

    revision = argv[1] if len(argv) > 1 else "head"
    alembic_cfg = Config("alembic.ini")

    with logfire.span("Running database migrations", revision=revision):
        try:
            command.upgrade(alembic_cfg, revision)
        except Exception:
            # A half-migrated schema must stop the deploy
            logfire.exception("Database migration failed", revision=revision)
            raise

    logfire.info("Database at revision", revision=revision)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
