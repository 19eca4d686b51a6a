# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment service for recording installment payments.

This module provides the PaymentService class for:
- Recording that an installment has been paid
- Sweeping pending installments past their due date to overdue
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from src.domains.enrollment.service import derive_payment_status
from src.domains.ledger.errors import (
    CompensationFailedError,
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    LedgerError,
    LedgerIntegrityError,
    LedgerValidationError,
    PaymentNotFoundError,
)
from src.domains.ledger.store import LedgerStore
from src.domains.salary.service import SalaryService
from src.models.common import InstallmentStatus
from src.utils.datetime import utc_today

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    """Outcome of recording an installment payment."""

    paid_amount: int
    payment_status: str
    warnings: list[str] = field(default_factory=list)


class PaymentService:
    """Service for installment payments.

    Attributes:
        store: Ledger store.
        salary: Salary recalculator.
    """

    def __init__(self, store: LedgerStore, salary: SalaryService | None = None) -> None:
        self.store = store
        self.salary = salary or SalaryService(store)

    async def record_payment(
        self,
        installment_id: str,
        payment_id: str,
        paid_date: date,
        payment_method: str,
        notes: str | None = None,
    ) -> PaymentResult:
        """Mark an installment paid and advance its payment.

        The installment is written first. If the payment update then fails
        the installment is reverted to its previous status before the error
        propagates.

        Args:
            installment_id: Installment identifier.
            payment_id: Payment the installment belongs to.
            paid_date: Date the money was received.
            payment_method: How it was paid.
            notes: Optional notes.

        Returns:
            New paid amount and payment status.

        Raises:
            InstallmentNotFoundError: If installment not found.
            InstallmentAlreadyPaidError: If installment is already paid.
            LedgerValidationError: If the installment is not part of the payment.
            PaymentNotFoundError: If payment not found.
            LedgerIntegrityError: If the payment would be overpaid.
        """
        installment = await self.store.get_installment(installment_id)
        if installment is None:
            raise InstallmentNotFoundError("Installment not found")

        if installment.status == InstallmentStatus.PAID.value:
            raise InstallmentAlreadyPaidError("Installment already paid")

        if installment.payment_id != payment_id:
            raise LedgerValidationError("Installment does not belong to this payment")

        payment = await self.store.get_payment(payment_id)
        if payment is None:
            raise PaymentNotFoundError("Payment record not found")

        new_paid = payment.paid_amount + installment.amount
        if new_paid > payment.total_amount:
            logger.error(
                "Refusing overpayment: payment=%s, paid=%d, installment=%d, total=%d",
                payment_id,
                payment.paid_amount,
                installment.amount,
                payment.total_amount,
            )
            raise LedgerIntegrityError("Payment would exceed the total amount due")

        await self.store.mark_installment_paid(installment_id, paid_date, payment_method, notes)

        new_status = derive_payment_status(new_paid, payment.total_amount)
        try:
            await self.store.update_payment_progress(payment_id, new_paid, new_status)
        except LedgerError as e:
            logger.error(
                "Payment update failed, reverting installment=%s to %s",
                installment_id,
                installment.status,
            )
            await self._revert_installment(installment_id, installment.status, payment_id, e)
            raise

        logger.info(
            "Recorded payment: installment=%s, payment=%s, amount=%d, paid=%d/%d",
            installment_id,
            payment_id,
            installment.amount,
            new_paid,
            payment.total_amount,
        )

        result = PaymentResult(paid_amount=new_paid, payment_status=new_status)
        result.warnings.extend(await self._recalculate_salary(payment.enrollment_id))
        return result

    async def _revert_installment(
        self,
        installment_id: str,
        status: str,
        payment_id: str,
        cause: LedgerError,
    ) -> None:
        """Put an installment back after its payment update failed.

        Raises:
            CompensationFailedError: If the revert fails. The installment is
                left paid against an unchanged payment.
        """
        try:
            await self.store.reset_installment(installment_id, status)
        except LedgerError as e:
            logger.error(
                "Compensation failed to reset installment=%s (payment=%s): %s",
                installment_id,
                payment_id,
                e,
            )
            dangling = {"payment_installments": installment_id}
            logger.error("Manual reconciliation required, dangling rows: %s", dangling)
            raise CompensationFailedError(
                "Payment update failed and the installment could not be reverted",
                dangling,
            ) from cause

    async def _recalculate_salary(self, enrollment_id: str) -> list[str]:
        """Best-effort salary refresh for the batch behind an enrollment."""
        try:
            enrollment = await self.store.get_enrollment(enrollment_id)
        except LedgerError as e:
            logger.warning("Salary recalculation skipped: enrollment=%s, error=%s", enrollment_id, e)
            return [f"Instructor salary recalculation failed: {e}"]
        if enrollment is None:
            return []
        return await self.salary.recalculate_quietly(enrollment.batch_id)

    async def mark_overdue(self, as_of: date | None = None) -> int:
        """Flip pending installments due before ``as_of`` to overdue.

        Args:
            as_of: Cutoff date, today when omitted.

        Returns:
            Number of installments updated.
        """
        cutoff = as_of or utc_today()
        count = await self.store.mark_overdue_installments(cutoff)
        logger.info("Marked installments overdue: as_of=%s, count=%d", cutoff, count)
        return count
