# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Installment schedule generation.

Pure functions that turn a post-discount total into installment specs.
All arithmetic is on integers: for a two-installment plan the first
installment takes the ceiling of half the total and the second takes the
remainder, so the two always add up to the total exactly and the first is
never the smaller one.
"""

from dataclasses import dataclass
from datetime import date

from src.domains.ledger.errors import LedgerValidationError
from src.models.common import DueType, InstallmentStatus, PlanType
from src.utils.datetime import add_days

SECOND_INSTALLMENT_OFFSET_DAYS = 28


@dataclass(frozen=True)
class InitialPayment:
    """A payment collected at the moment of enrollment.

    Attributes:
        paid_date: Date the money was received.
        payment_method: How it was paid (cash, bank transfer, ...).
        notes: Free-form notes.
    """

    paid_date: date
    payment_method: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class InstallmentSpec:
    """An installment about to be inserted."""

    number: int
    amount: int
    due_type: str
    due_date: date
    status: str
    paid_date: date | None = None
    payment_method: str | None = None
    notes: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == InstallmentStatus.PAID.value


def split_in_two(total: int) -> tuple[int, int]:
    """Split a total into (ceil(total / 2), remainder).

    Example:
        >>> split_in_two(100001)
        (50001, 50000)
    """
    first = (total + 1) // 2
    return first, total - first


def _first_installment(
    amount: int,
    enrollment_date: date,
    initial_payment: InitialPayment | None,
) -> InstallmentSpec:
    if initial_payment is None:
        return InstallmentSpec(
            number=1,
            amount=amount,
            due_type=DueType.ENROLLMENT.value,
            due_date=enrollment_date,
            status=InstallmentStatus.PENDING.value,
        )
    return InstallmentSpec(
        number=1,
        amount=amount,
        due_type=DueType.ENROLLMENT.value,
        due_date=enrollment_date,
        status=InstallmentStatus.PAID.value,
        paid_date=initial_payment.paid_date,
        payment_method=initial_payment.payment_method,
        notes=initial_payment.notes,
    )


def generate_installments(
    final_amount: int,
    plan_type: str,
    enrollment_date: date,
    batch_start_date: date | None,
    initial_payment: InitialPayment | None = None,
    second_offset_days: int = SECOND_INSTALLMENT_OFFSET_DAYS,
) -> list[InstallmentSpec]:
    """Generate the installment schedule for a payment.

    Args:
        final_amount: Post-discount total in whole currency units.
        plan_type: "full" or "installment_2".
        enrollment_date: Date of enrollment; the first installment is due then.
        batch_start_date: Batch start; the second installment is due
            ``second_offset_days`` after it.
        initial_payment: Payment collected at enrollment, if any. It settles
            the first installment only.
        second_offset_days: Offset of the second due date from batch start.

    Returns:
        Installment specs ordered by number.

    Raises:
        LedgerValidationError: On a negative amount, an unknown plan type, or
            a two-installment plan for a batch without a start date.
    """
    if final_amount < 0:
        raise LedgerValidationError("Payment amount cannot be negative")

    if plan_type == PlanType.FULL.value:
        return [_first_installment(final_amount, enrollment_date, initial_payment)]

    if plan_type != PlanType.INSTALLMENT_2.value:
        raise LedgerValidationError(f"Unknown payment plan: {plan_type}")

    if batch_start_date is None:
        raise LedgerValidationError("Batch has no start date; cannot schedule the second installment")

    first_amount, second_amount = split_in_two(final_amount)
    return [
        _first_installment(first_amount, enrollment_date, initial_payment),
        InstallmentSpec(
            number=2,
            amount=second_amount,
            due_type=DueType.COURSE_START_PLUS_4W.value,
            due_date=add_days(batch_start_date, second_offset_days),
            status=InstallmentStatus.PENDING.value,
        ),
    ]


def initial_paid_amount(specs: list[InstallmentSpec]) -> int:
    """Sum of the installments created already paid."""
    return sum(spec.amount for spec in specs if spec.is_paid)
