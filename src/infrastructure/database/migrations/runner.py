# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Programmatic migration runner for the ledger database.

Applies the revisions in ``migrations/ledger`` without the alembic CLI, for
deployments that migrate on startup or from a one-off task:

    python -m src.infrastructure.database.migrations.runner

Progress is recorded in the standard ``alembic_version`` table, so this
runner and ``alembic upgrade head`` agree on what has been applied.
Revisions are discovered from the package and ordered by file name, which
starts with a zero-padded sequence number.
"""

import asyncio
import importlib
import logging
import pkgutil
from types import ModuleType

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from src.core.config import get_settings
from src.infrastructure.database.migrations import ledger as ledger_revisions

logger = logging.getLogger(__name__)

VERSION_TABLE_DDL = """
    CREATE TABLE IF NOT EXISTS alembic_version (
        version_num VARCHAR(128) NOT NULL,
        CONSTRAINT alembic_version_pkc PRIMARY KEY (version_num)
    )
"""


def available_migrations() -> list[str]:
    """List ledger revision ids in application order."""
    return sorted(
        info.name
        for info in pkgutil.iter_modules(ledger_revisions.__path__)
        if info.name[:3].isdigit()
    )


LEDGER_MIGRATIONS = available_migrations()


def pending_migrations(
    current_version: str | None,
    target_revision: str | None = None,
) -> list[str]:
    """Revisions after ``current_version`` up to and including ``target_revision``.

    An unknown current or target revision yields nothing; the runner never
    guesses where a foreign database stands.
    """
    known = LEDGER_MIGRATIONS
    if current_version is not None and current_version not in known:
        logger.warning("Database is at unknown revision %s, not migrating", current_version)
        return []
    if target_revision is not None and target_revision not in known:
        logger.warning("Unknown target revision %s", target_revision)
        return []

    start = known.index(current_version) + 1 if current_version else 0
    end = known.index(target_revision) + 1 if target_revision else len(known)
    return known[start:end]


def _load_revision(revision: str) -> ModuleType:
    module = importlib.import_module(f"{ledger_revisions.__name__}.{revision}")
    if not callable(getattr(module, "upgrade", None)):
        raise ValueError(f"Migration {revision} has no upgrade() function")
    return module


async def current_revision(conn: AsyncConnection) -> str | None:
    """Read the applied revision, creating the version table if needed."""
    await conn.execute(text(VERSION_TABLE_DDL))
    result = await conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
    row = result.fetchone()
    return row[0] if row else None


def _upgrade_sync(connection, module: ModuleType) -> None:
    from alembic.operations import Operations
    from alembic.runtime.migration import MigrationContext

    migration_context = MigrationContext.configure(connection)
    with Operations.context(migration_context):
        module.upgrade()


async def _apply(engine: AsyncEngine, revision: str) -> None:
    """Apply one revision and move the version pointer in one transaction."""
    module = _load_revision(revision)
    async with engine.begin() as conn:
        await conn.run_sync(_upgrade_sync, module)
        await conn.execute(text("DELETE FROM alembic_version"))
        await conn.execute(
            text("INSERT INTO alembic_version (version_num) VALUES (:version)"),
            {"version": revision},
        )


async def run_ledger_migrations(
    db_url: str | None = None,
    target_revision: str | None = None,
) -> list[str]:
    """Bring the ledger database up to date.

    Args:
        db_url: Async connection URL; the configured database when omitted.
        target_revision: Stop after this revision; all pending when None.

    Returns:
        Revision ids applied, in order.
    """
    engine = create_async_engine(db_url or get_settings().database.url)
    try:
        async with engine.begin() as conn:
            current = await current_revision(conn)

        todo = pending_migrations(current, target_revision)
        logger.info("Ledger schema at %s, %d migration(s) pending", current or "empty", len(todo))

        for revision in todo:
            await _apply(engine, revision)
            logger.info("Applied migration: %s", revision)
        return todo
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_ledger_migrations())
