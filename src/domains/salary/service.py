# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Instructor profit-share salary recalculation.

The salary of a profit-share instructor is derived from the whole ledger of
a batch every time: the sum of all enrollment payment totals minus all
recorded expenses, times the instructor's percentage. Nothing is updated
incrementally, so the recalculation is idempotent and can run after any
event that touches a batch's income or costs.

Rounding is half away from zero on the exact decimal product, so
(income - expenses) * pct / 100 = 1234.5 becomes 1235 and -1234.5 becomes
-1235.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.domains.ledger.errors import BatchNotFoundError, LedgerError
from src.domains.ledger.store import LedgerStore
from src.models.common import PaymentModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalaryResult:
    """Outcome of a salary recalculation.

    Attributes:
        updated: Whether the batch's instructor_salary was written.
        salary: The new salary when updated.
    """

    updated: bool
    salary: int | None = None


def compute_profit_share(total_income: int, total_expenses: int, percentage: Decimal) -> int:
    """Compute a profit-share salary.

    Args:
        total_income: Sum of payment totals for the batch.
        total_expenses: Sum of expenses for the batch.
        percentage: Instructor share, 0-100.

    Returns:
        Salary rounded half away from zero.

    Example:
        >>> compute_profit_share(1_000_000, 200_000, Decimal("30"))
        240000
    """
    raw = Decimal(total_income - total_expenses) * Decimal(percentage) / Decimal(100)
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class SalaryService:
    """Recomputes batch instructor salaries from the ledger.

    Attributes:
        store: Ledger store.
    """

    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    async def recalculate(self, batch_id: str) -> SalaryResult:
        """Recalculate and persist the instructor salary for a batch.

        Args:
            batch_id: Batch identifier.

        Returns:
            SalaryResult; ``updated`` is False unless the instructor is on
            the profit-share model.

        Raises:
            BatchNotFoundError: If batch not found.
        """
        batch = await self.store.get_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError(f"Batch {batch_id} not found")

        if not batch.instructor_id:
            logger.debug("Batch has no instructor, salary unchanged: batch=%s", batch_id)
            return SalaryResult(updated=False)

        instructor = await self.store.get_instructor(batch.instructor_id)
        if instructor is None or instructor.payment_model != PaymentModel.PROFIT_SHARE.value:
            return SalaryResult(updated=False)

        total_income = await self.store.sum_payment_totals(batch_id)
        total_expenses = await self.store.sum_expenses(batch_id)
        salary = compute_profit_share(
            total_income,
            total_expenses,
            instructor.profit_share_percentage,
        )

        await self.store.set_instructor_salary(batch_id, salary)

        logger.info(
            "Recalculated instructor salary: batch=%s, income=%d, expenses=%d, pct=%s, salary=%d",
            batch_id,
            total_income,
            total_expenses,
            instructor.profit_share_percentage,
            salary,
        )

        return SalaryResult(updated=True, salary=salary)

    async def recalculate_quietly(self, batch_id: str) -> list[str]:
        """Recalculate after a committed ledger change.

        Failures here must not undo the change that triggered them, so they
        are logged and returned as warning messages instead of raised.

        Args:
            batch_id: Batch identifier.

        Returns:
            Warning messages; empty when the recalculation succeeded.
        """
        try:
            await self.recalculate(batch_id)
        except LedgerError as e:
            logger.warning("Salary recalculation failed: batch=%s, error=%s", batch_id, e)
            return [f"Instructor salary recalculation failed: {e}"]
        return []
