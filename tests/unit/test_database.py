# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database plumbing: models, connection state, migrations."""

import importlib
from unittest.mock import MagicMock

import pytest
from sqlalchemy import UniqueConstraint

from src.infrastructure.database.connection import (
    DatabaseError,
    _engine_options,
    check_database_connection,
    get_engine,
    get_sessionmaker,
)
from src.infrastructure.database.migrations.runner import (
    LEDGER_MIGRATIONS,
    pending_migrations,
)
from src.infrastructure.database.models import Base


class TestLedgerModels:
    """Tests for the ORM metadata."""

    def test_all_tables_registered(self):
        assert set(Base.metadata.tables) == {
            "courses",
            "users",
            "batches",
            "enrollments",
            "payments",
            "payment_installments",
            "batch_expenses",
        }

    @pytest.mark.parametrize(
        "table, columns",
        [
            ("enrollments", {"student_id", "batch_id"}),
            ("payment_installments", {"payment_id", "number"}),
        ],
    )
    def test_unique_constraints(self, table, columns):
        constraints = [
            {c.name for c in constraint.columns}
            for constraint in Base.metadata.tables[table].constraints
            if isinstance(constraint, UniqueConstraint)
        ]
        assert columns in constraints

    def test_one_payment_per_enrollment(self):
        assert Base.metadata.tables["payments"].c.enrollment_id.unique is True


class TestConnectionState:
    """Tests for connection helpers before initialization."""

    def test_engine_requires_init(self):
        with pytest.raises(DatabaseError, match="not initialized"):
            get_engine()

    def test_sessionmaker_requires_init(self):
        with pytest.raises(DatabaseError):
            get_sessionmaker()

    @pytest.mark.asyncio
    async def test_check_connection_without_engine(self):
        assert await check_database_connection() is False

    def test_pool_options_for_postgres(self):
        settings = MagicMock()
        settings.database.url = "postgresql+asyncpg://ledger:pw@localhost:5432/ledger"
        settings.database.pool_size = 7
        settings.database.max_overflow = 3

        options = _engine_options(settings)

        assert options["pool_size"] == 7
        assert options["max_overflow"] == 3
        assert options["pool_pre_ping"] is True

    def test_no_pool_options_for_sqlite(self):
        settings = MagicMock()
        settings.database.url = "sqlite+aiosqlite:///ledger.db"

        assert _engine_options(settings) == {"echo": False}

    def test_error_message_includes_cause(self):
        error = DatabaseError("Database operation failed", RuntimeError("boom"))

        assert str(error) == "Database operation failed: boom"


class TestMigrationRunner:
    """Tests for migration ordering."""

    def test_fresh_database_gets_everything(self):
        assert pending_migrations(None) == LEDGER_MIGRATIONS

    def test_up_to_date_database(self):
        assert pending_migrations(LEDGER_MIGRATIONS[-1]) == []

    def test_unknown_version(self):
        assert pending_migrations("999_unknown") == []

    def test_unknown_target(self):
        assert pending_migrations(None, "999_unknown") == []

    @pytest.mark.parametrize("revision", LEDGER_MIGRATIONS)
    def test_migration_modules_are_well_formed(self, revision):
        module = importlib.import_module(
            f"src.infrastructure.database.migrations.ledger.{revision}"
        )

        assert module.revision == revision
        assert callable(module.upgrade)
        assert callable(module.downgrade)
