# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for enrolling students into batches.

This module provides the EnrollmentService class for:
- Enrolling a student with discount and installment schedule
- Unenrolling a student (removes payment and installments)
- Reading the tuition ledger of an enrollment

Enrollment writes three record types one after another. Each store write
commits on its own, so a failure part way is undone with compensating
deletes in reverse order:

1. insert enrollment
2. insert payment      -> on failure delete (1)
3. insert installments -> on failure delete (2), then (1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.domains.enrollment.discount import DiscountPolicy
from src.domains.enrollment.schedule import (
    SECOND_INSTALLMENT_OFFSET_DAYS,
    InitialPayment,
    generate_installments,
    initial_paid_amount,
)
from src.domains.ledger.errors import (
    AlreadyEnrolledError,
    BatchFullError,
    BatchNotFoundError,
    CompensationFailedError,
    EnrollmentNotFoundError,
    LedgerError,
    LedgerIntegrityError,
    PaymentNotFoundError,
    StudentNotFoundError,
)
from src.domains.ledger.locks import BatchLockRegistry, get_batch_locks
from src.domains.ledger.records import (
    EnrollmentRecord,
    InstallmentRecord,
    NewPayment,
    PaymentRecord,
)
from src.domains.ledger.store import LedgerStore
from src.domains.salary.service import SalaryService
from src.models.common import EnrollmentStatus, PaymentStatus
from src.utils.datetime import utc_today

logger = logging.getLogger(__name__)


@dataclass
class EnrollmentResult:
    """Outcome of a successful enrollment.

    Attributes:
        enrollment_id: New enrollment identifier.
        payment_id: New payment identifier.
        discount_applied: Whether the multi-course discount was applied.
        total_amount: Amount due after discount.
        paid_amount: Amount settled at enrollment.
        warnings: Non-fatal problems in follow-up work (salary update).
    """

    enrollment_id: str
    payment_id: str
    discount_applied: bool
    total_amount: int
    paid_amount: int
    warnings: list[str] = field(default_factory=list)


@dataclass
class EnrollmentLedger:
    """An enrollment with its payment and installments."""

    enrollment: EnrollmentRecord
    payment: PaymentRecord
    installments: list[InstallmentRecord]


def derive_payment_status(paid_amount: int, total_amount: int) -> str:
    """Payment status is paid iff paid_amount reaches total_amount."""
    if paid_amount >= total_amount:
        return PaymentStatus.PAID.value
    return PaymentStatus.PARTIAL.value


class EnrollmentService:
    """Service for enrolling and unenrolling students.

    Attributes:
        store: Ledger store.
        salary: Salary recalculator triggered after ledger changes.
        discounts: Multi-course discount policy.
        locks: Per-batch lock registry.
    """

    def __init__(
        self,
        store: LedgerStore,
        salary: SalaryService | None = None,
        discounts: DiscountPolicy | None = None,
        locks: BatchLockRegistry | None = None,
        second_offset_days: int = SECOND_INSTALLMENT_OFFSET_DAYS,
    ) -> None:
        """Initialize enrollment service.

        Args:
            store: Ledger store for the request.
            salary: Salary service; built on the same store when omitted.
            discounts: Discount policy; default amounts when omitted.
            locks: Batch locks; the process-wide registry when omitted.
            second_offset_days: Days after batch start the second
                installment falls due.
        """
        self.store = store
        self.salary = salary or SalaryService(store)
        self.discounts = discounts or DiscountPolicy(store)
        self.locks = locks or get_batch_locks()
        self.second_offset_days = second_offset_days

    async def enroll(
        self,
        batch_id: str,
        student_id: str,
        plan_type: str,
        initial_payment: InitialPayment | None = None,
    ) -> EnrollmentResult:
        """Enroll a student in a batch.

        Args:
            batch_id: Batch identifier.
            student_id: Student identifier.
            plan_type: "full" or "installment_2".
            initial_payment: Money collected at enrollment, if any.

        Returns:
            Enrollment result.

        Raises:
            BatchNotFoundError: If batch not found.
            StudentNotFoundError: If student not found.
            BatchFullError: If batch is at capacity.
            AlreadyEnrolledError: If student already enrolled.
            LedgerValidationError: If the schedule cannot be generated.
            LedgerIntegrityError: If a later write failed and was compensated.
            CompensationFailedError: If the compensation failed too.
        """
        async with self.locks.hold(batch_id):
            result = await self._enroll_locked(batch_id, student_id, plan_type, initial_payment)

        result.warnings.extend(await self.salary.recalculate_quietly(batch_id))
        return result

    async def _enroll_locked(
        self,
        batch_id: str,
        student_id: str,
        plan_type: str,
        initial_payment: InitialPayment | None,
    ) -> EnrollmentResult:
        batch = await self.store.get_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError("Batch not found")

        student = await self.store.get_student(student_id)
        if student is None:
            raise StudentNotFoundError("Student not found")

        enrolled = await self.store.count_batch_enrollments(batch_id)
        if enrolled >= batch.max_students:
            raise BatchFullError("Batch is full")

        if await self.store.find_enrollment(student_id, batch_id):
            raise AlreadyEnrolledError("Student is already enrolled in this batch")

        discount = await self.discounts.evaluate(student_id)
        course_fee = batch.course_fee
        final_amount = max(0, course_fee - discount.discount_amount)

        # Validates plan type and start date before anything is written.
        enrollment_date = utc_today()
        schedule = generate_installments(
            final_amount,
            plan_type,
            enrollment_date,
            batch.start_date,
            initial_payment,
            self.second_offset_days,
        )

        enrollment = await self.store.insert_enrollment(
            student_id=student_id,
            batch_id=batch_id,
            status=EnrollmentStatus.ACTIVE.value,
            enrolled_date=enrollment_date,
        )

        try:
            payment = await self.store.insert_payment(
                NewPayment(
                    enrollment_id=enrollment.id,
                    base_amount=course_fee,
                    discount_amount=discount.discount_amount,
                    total_amount=final_amount,
                    plan_type=plan_type,
                    multi_course_discount=discount.is_multi_course,
                    discount_notes=discount.notes,
                )
            )
        except LedgerError as e:
            logger.error("Payment creation failed, rolling back enrollment=%s: %s", enrollment.id, e)
            await self._compensate(enrollment_id=enrollment.id)
            raise LedgerIntegrityError("Failed to create payment record") from e

        try:
            await self.store.insert_installments(payment.id, schedule)
        except LedgerError as e:
            logger.error(
                "Installment creation failed, rolling back payment=%s enrollment=%s: %s",
                payment.id,
                enrollment.id,
                e,
            )
            await self._compensate(enrollment_id=enrollment.id, payment_id=payment.id)
            raise LedgerIntegrityError("Failed to create payment installments") from e

        paid_amount = 0
        if initial_payment is not None:
            paid_amount = initial_paid_amount(schedule)
            await self.store.update_payment_progress(
                payment.id,
                paid_amount,
                derive_payment_status(paid_amount, final_amount),
            )

        logger.info(
            "Enrolled student: student=%s, batch=%s, plan=%s, fee=%d, discount=%d, paid=%d",
            student_id,
            batch_id,
            plan_type,
            course_fee,
            discount.discount_amount,
            paid_amount,
        )

        return EnrollmentResult(
            enrollment_id=enrollment.id,
            payment_id=payment.id,
            discount_applied=discount.is_multi_course,
            total_amount=final_amount,
            paid_amount=paid_amount,
        )

    async def _compensate(self, enrollment_id: str, payment_id: str | None = None) -> None:
        """Undo the writes of a failed enrollment, newest first.

        Raises:
            CompensationFailedError: If a compensating delete fails. The
                rows left behind are logged for manual reconciliation.
        """
        dangling: dict[str, str] = {}
        if payment_id is not None:
            try:
                await self.store.delete_payment(payment_id)
            except LedgerError as e:
                logger.error("Compensation failed to delete payment=%s: %s", payment_id, e)
                dangling["payments"] = payment_id

        try:
            await self.store.delete_enrollment(enrollment_id)
        except LedgerError as e:
            logger.error("Compensation failed to delete enrollment=%s: %s", enrollment_id, e)
            dangling["enrollments"] = enrollment_id

        if dangling:
            logger.error("Manual reconciliation required, dangling rows: %s", dangling)
            raise CompensationFailedError(
                "Enrollment failed and could not be fully rolled back",
                dangling,
            )

    async def unenroll(self, enrollment_id: str) -> list[str]:
        """Remove an enrollment together with its payment and installments.

        Args:
            enrollment_id: Enrollment identifier.

        Returns:
            Warning messages from the salary recalculation.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
        """
        enrollment = await self.store.get_enrollment(enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError("Enrollment not found")

        async with self.locks.hold(enrollment.batch_id):
            await self.store.delete_enrollment(enrollment_id)

        logger.info(
            "Removed enrollment: enrollment=%s, student=%s, batch=%s",
            enrollment_id,
            enrollment.student_id,
            enrollment.batch_id,
        )

        return await self.salary.recalculate_quietly(enrollment.batch_id)

    async def get_ledger(self, enrollment_id: str) -> EnrollmentLedger:
        """Get an enrollment's payment and installments.

        Args:
            enrollment_id: Enrollment identifier.

        Returns:
            Enrollment ledger with installments ordered by number.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            PaymentNotFoundError: If the enrollment has no payment.
        """
        enrollment = await self.store.get_enrollment(enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError("Enrollment not found")

        payment = await self.store.get_payment_for_enrollment(enrollment_id)
        if payment is None:
            raise PaymentNotFoundError("Payment record not found")

        installments = await self.store.list_installments(payment.id)
        return EnrollmentLedger(
            enrollment=enrollment,
            payment=payment,
            installments=sorted(installments, key=lambda i: i.number),
        )
