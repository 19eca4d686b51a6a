# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch finance service.

Per-batch income and expense overview, expense bookkeeping, and batch
deletion. Income here is money actually received (paid installments),
unlike the salary base which uses the full payment totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from src.domains.ledger.errors import (
    BatchHasEnrollmentsError,
    BatchNotFoundError,
    ExpenseNotFoundError,
    LedgerValidationError,
)
from src.domains.ledger.records import ExpenseRecord
from src.domains.ledger.store import LedgerStore
from src.domains.salary.service import SalaryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchFinanceSummary:
    """Income, costs and net result of one batch."""

    batch_id: str
    batch_name: str
    course_title: str
    income: int
    expenses: int
    expense_count: int
    instructor_salary: int
    net: int


@dataclass
class ExpenseResult:
    """An expense write plus salary warnings."""

    expense: ExpenseRecord | None
    warnings: list[str] = field(default_factory=list)


def normalize_amount(amount: int | float | Decimal | str) -> int:
    """Round an expense amount to whole currency units.

    Raises:
        LedgerValidationError: If the rounded amount is not positive.
    """
    try:
        value = Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    except ArithmeticError as e:
        raise LedgerValidationError("Amount must be a number") from e
    if value <= 0:
        raise LedgerValidationError("Amount must be greater than 0")
    return int(value)


def _require_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise LedgerValidationError("Title is required")
    return title


class FinanceService:
    """Service for batch finances.

    Attributes:
        store: Ledger store.
        salary: Salary recalculator.
    """

    def __init__(self, store: LedgerStore, salary: SalaryService | None = None) -> None:
        self.store = store
        self.salary = salary or SalaryService(store)

    async def summarize(self, batch_id: str | None = None) -> list[BatchFinanceSummary]:
        """Summarize finances per batch, highest income first.

        Args:
            batch_id: Restrict to a single batch.

        Returns:
            Batch summaries.
        """
        rows = await self.store.batch_finance_rows(batch_id)
        summaries = [
            BatchFinanceSummary(
                batch_id=row.batch_id,
                batch_name=row.batch_name,
                course_title=row.course_title,
                income=row.income,
                expenses=row.expenses,
                expense_count=row.expense_count,
                instructor_salary=row.instructor_salary,
                net=row.income - row.expenses - row.instructor_salary,
            )
            for row in rows
        ]
        return sorted(summaries, key=lambda s: s.income, reverse=True)

    async def add_expense(
        self,
        batch_id: str,
        title: str,
        amount: int | float | Decimal,
        expense_date: date,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> ExpenseResult:
        """Record an expense against a batch.

        Raises:
            BatchNotFoundError: If batch not found.
            LedgerValidationError: If title is blank or amount not positive.
        """
        title = _require_title(title)
        value = normalize_amount(amount)

        if await self.store.get_batch(batch_id) is None:
            raise BatchNotFoundError("Batch not found")

        expense = await self.store.insert_expense(
            batch_id=batch_id,
            title=title,
            amount=value,
            expense_date=expense_date,
            notes=notes,
            created_by=created_by,
        )
        logger.info("Added expense: batch=%s, expense=%s, amount=%d", batch_id, expense.id, value)

        warnings = await self.salary.recalculate_quietly(batch_id)
        return ExpenseResult(expense=expense, warnings=warnings)

    async def update_expense(
        self,
        expense_id: str,
        title: str,
        amount: int | float | Decimal,
        expense_date: date,
        notes: str | None = None,
    ) -> ExpenseResult:
        """Update an expense.

        Raises:
            ExpenseNotFoundError: If expense not found.
            LedgerValidationError: If title is blank or amount not positive.
        """
        title = _require_title(title)
        value = normalize_amount(amount)

        existing = await self.store.get_expense(expense_id)
        if existing is None:
            raise ExpenseNotFoundError("Expense not found")

        expense = await self.store.update_expense(
            expense_id=expense_id,
            title=title,
            amount=value,
            expense_date=expense_date,
            notes=notes,
        )
        logger.info("Updated expense: expense=%s, amount=%d", expense_id, value)

        warnings = await self.salary.recalculate_quietly(existing.batch_id)
        return ExpenseResult(expense=expense, warnings=warnings)

    async def delete_expense(self, expense_id: str) -> ExpenseResult:
        """Delete an expense.

        Raises:
            ExpenseNotFoundError: If expense not found.
        """
        existing = await self.store.get_expense(expense_id)
        if existing is None:
            raise ExpenseNotFoundError("Expense not found")

        await self.store.delete_expense(expense_id)
        logger.info("Deleted expense: expense=%s, batch=%s", expense_id, existing.batch_id)

        warnings = await self.salary.recalculate_quietly(existing.batch_id)
        return ExpenseResult(expense=None, warnings=warnings)

    async def delete_batch(self, batch_id: str) -> None:
        """Delete a batch and its expenses.

        Raises:
            BatchNotFoundError: If batch not found.
            BatchHasEnrollmentsError: If students are still enrolled.
        """
        if await self.store.get_batch(batch_id) is None:
            raise BatchNotFoundError("Batch not found")

        enrolled = await self.store.count_batch_enrollments(batch_id)
        if enrolled > 0:
            raise BatchHasEnrollmentsError(
                f"Cannot delete batch with {enrolled} enrolled student(s). "
                "Please remove all students first."
            )

        await self.store.delete_batch(batch_id)
        logger.info("Deleted batch: batch=%s", batch_id)
