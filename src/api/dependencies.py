# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get a request-scoped ledger database session
- Build the ledger store on that session
- Get service instances configured from settings

Example:
    @router.post("/enrollments")
    async def enroll(
        data: EnrollRequest,
        service: EnrollmentService = Depends(get_enrollment_service),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.domains.enrollment.discount import DiscountPolicy
from src.domains.enrollment.service import EnrollmentService
from src.domains.finance.service import FinanceService
from src.domains.ledger.locks import get_batch_locks
from src.domains.ledger.store import LedgerStore, SqlLedgerStore
from src.domains.payment.service import PaymentService
from src.domains.salary.service import SalaryService
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the ledger database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the ledger database connection pool."""
    await close_database()


async def get_ledger_db() -> AsyncGenerator[AsyncSession, None]:
    """Get ledger database session.

    Yields:
        AsyncSession for the ledger database.
    """
    async with get_session() as session:
        yield session


def get_ledger_store(db: AsyncSession = Depends(get_ledger_db)) -> LedgerStore:
    """Get the ledger store for the request session."""
    return SqlLedgerStore(db)


def get_salary_service(store: LedgerStore = Depends(get_ledger_store)) -> SalaryService:
    return SalaryService(store)


def get_enrollment_service(
    store: LedgerStore = Depends(get_ledger_store),
    salary: SalaryService = Depends(get_salary_service),
    settings: Settings = Depends(get_settings),
) -> EnrollmentService:
    """Get enrollment service instance.

    Args:
        store: Ledger store.
        salary: Salary service sharing the store.
        settings: Application settings.

    Returns:
        Configured EnrollmentService instance.
    """
    return EnrollmentService(
        store=store,
        salary=salary,
        discounts=DiscountPolicy(
            store,
            amount=settings.ledger.multi_course_discount,
            currency=settings.ledger.currency,
        ),
        locks=get_batch_locks(),
        second_offset_days=settings.ledger.second_installment_offset_days,
    )


def get_payment_service(
    store: LedgerStore = Depends(get_ledger_store),
    salary: SalaryService = Depends(get_salary_service),
) -> PaymentService:
    return PaymentService(store=store, salary=salary)


def get_finance_service(
    store: LedgerStore = Depends(get_ledger_store),
    salary: SalaryService = Depends(get_salary_service),
) -> FinanceService:
    return FinanceService(store=store, salary=salary)
