# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ledger database engine and sessions (SQLAlchemy async).

One engine and one sessionmaker per process, created by ``init_database``
during application startup and disposed by ``close_database`` at shutdown.
Route handlers get their session from the ``get_ledger_db`` dependency and
never reach for the engine themselves.

Example:
    await init_database(get_settings())

    async with get_session() as session:
        batches = (await session.execute(select(Batch))).scalars().all()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

_NOT_INITIALIZED = "Ledger database not initialized. Call init_database() first."


class DatabaseError(Exception):
    """Connection-level database failure.

    Attributes:
        message: What was being attempted.
        original_error: The SQLAlchemy error behind it, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error is None:
            return self.message
        return f"{self.message}: {self.original_error}"


def _engine_options(settings: "Settings") -> dict[str, Any]:
    """Engine keyword arguments for the configured URL.

    SQLite (local tooling) takes no pool sizing options.
    """
    db = settings.database
    if db.url.startswith("sqlite"):
        return {"echo": False}
    return {
        "echo": False,
        "pool_size": db.pool_size,
        "max_overflow": db.max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 1800,
    }


async def init_database(settings: "Settings") -> None:
    """Create the engine and sessionmaker for the ledger database.

    Raises:
        DatabaseError: If the engine cannot be created.
    """
    global _engine, _sessionmaker

    try:
        _engine = create_async_engine(settings.database.url, **_engine_options(settings))
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize ledger database connection", e) from e

    # Stores read attributes of rows they just committed
    _sessionmaker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def close_database() -> None:
    """Dispose of the pool. A no-op when nothing was initialized."""
    global _engine, _sessionmaker

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _sessionmaker = None


def get_engine() -> AsyncEngine:
    """Return the ledger engine.

    Raises:
        DatabaseError: Before init_database().
    """
    if _engine is None:
        raise DatabaseError(_NOT_INITIALIZED)
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the ledger sessionmaker.

    Raises:
        DatabaseError: Before init_database().
    """
    if _sessionmaker is None:
        raise DatabaseError(_NOT_INITIALIZED)
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Open a session, committing on exit and rolling back on error.

    Ledger stores commit each write themselves, so the closing commit only
    matters for callers that leave work pending.

    Raises:
        DatabaseError: Before init_database(), or when SQLAlchemy fails.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except Exception:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    """Return whether ``SELECT 1`` succeeds against the ledger database."""
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return False
    return True
