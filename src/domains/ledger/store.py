# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ledger store: persistence for enrollments, payments, installments, expenses.

This module defines the LedgerStore interface used by every ledger service
and SqlLedgerStore, its SQLAlchemy implementation over a request-scoped
AsyncSession.

Every write method commits on its own and no transaction spans several
writes. Multi-write operations (enrollment, payment recording)
compensate earlier writes when a later one fails.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.ledger.errors import AlreadyEnrolledError, ExpenseNotFoundError, StoreError
from src.domains.ledger.records import (
    BatchFinanceRow,
    BatchRecord,
    EnrollmentRecord,
    ExpenseRecord,
    InstallmentRecord,
    InstructorRecord,
    NewPayment,
    PaymentRecord,
    StudentRecord,
)
from src.infrastructure.database.models import (
    Batch,
    Course,
    Enrollment,
    Expense,
    Installment,
    Payment,
    User,
)
from src.models.common import InstallmentStatus, UserRole

if TYPE_CHECKING:
    from src.domains.enrollment.schedule import InstallmentSpec

logger = logging.getLogger(__name__)


class LedgerStore(ABC):
    """Persistence interface for the tuition ledger.

    Reads return value records or None; writes either succeed and are
    durable, or raise StoreError (or a more specific LedgerError).
    """

    # Directory and catalog reads

    @abstractmethod
    async def get_batch(self, batch_id: str) -> BatchRecord | None: ...

    @abstractmethod
    async def get_student(self, student_id: str) -> StudentRecord | None: ...

    @abstractmethod
    async def get_instructor(self, instructor_id: str) -> InstructorRecord | None: ...

    # Enrollment

    @abstractmethod
    async def count_batch_enrollments(self, batch_id: str) -> int: ...

    @abstractmethod
    async def count_student_enrollments(self, student_id: str) -> int: ...

    @abstractmethod
    async def find_enrollment(self, student_id: str, batch_id: str) -> EnrollmentRecord | None: ...

    @abstractmethod
    async def get_enrollment(self, enrollment_id: str) -> EnrollmentRecord | None: ...

    @abstractmethod
    async def insert_enrollment(
        self,
        student_id: str,
        batch_id: str,
        status: str,
        enrolled_date: date,
    ) -> EnrollmentRecord: ...

    @abstractmethod
    async def delete_enrollment(self, enrollment_id: str) -> None:
        """Delete an enrollment with its payment and installments."""

    # Payments and installments

    @abstractmethod
    async def insert_payment(self, payment: NewPayment) -> PaymentRecord: ...

    @abstractmethod
    async def get_payment(self, payment_id: str) -> PaymentRecord | None: ...

    @abstractmethod
    async def get_payment_for_enrollment(self, enrollment_id: str) -> PaymentRecord | None: ...

    @abstractmethod
    async def update_payment_progress(self, payment_id: str, paid_amount: int, status: str) -> None: ...

    @abstractmethod
    async def delete_payment(self, payment_id: str) -> None:
        """Delete a payment with its installments."""

    @abstractmethod
    async def insert_installments(
        self,
        payment_id: str,
        specs: Sequence[InstallmentSpec],
    ) -> list[InstallmentRecord]:
        """Insert all installments of a payment in one statement."""

    @abstractmethod
    async def list_installments(self, payment_id: str) -> list[InstallmentRecord]: ...

    @abstractmethod
    async def get_installment(self, installment_id: str) -> InstallmentRecord | None: ...

    @abstractmethod
    async def mark_installment_paid(
        self,
        installment_id: str,
        paid_date: date,
        payment_method: str,
        notes: str | None,
    ) -> None: ...

    @abstractmethod
    async def reset_installment(self, installment_id: str, status: str) -> None:
        """Set an installment's status and clear its paid fields."""

    @abstractmethod
    async def mark_overdue_installments(self, as_of: date) -> int:
        """Flip pending installments due before ``as_of`` to overdue."""

    # Salary inputs and output

    @abstractmethod
    async def sum_payment_totals(self, batch_id: str) -> int: ...

    @abstractmethod
    async def sum_expenses(self, batch_id: str) -> int: ...

    @abstractmethod
    async def set_instructor_salary(self, batch_id: str, salary: int) -> None: ...

    # Expenses and batch finance

    @abstractmethod
    async def get_expense(self, expense_id: str) -> ExpenseRecord | None: ...

    @abstractmethod
    async def insert_expense(
        self,
        batch_id: str,
        title: str,
        amount: int,
        expense_date: date,
        notes: str | None,
        created_by: str | None,
    ) -> ExpenseRecord: ...

    @abstractmethod
    async def update_expense(
        self,
        expense_id: str,
        title: str,
        amount: int,
        expense_date: date,
        notes: str | None,
    ) -> ExpenseRecord: ...

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> None: ...

    @abstractmethod
    async def batch_finance_rows(self, batch_id: str | None = None) -> list[BatchFinanceRow]: ...

    @abstractmethod
    async def delete_batch(self, batch_id: str) -> None:
        """Delete a batch and its expenses."""


def _enrollment_record(row: Enrollment) -> EnrollmentRecord:
    return EnrollmentRecord(
        id=row.id,
        student_id=row.student_id,
        batch_id=row.batch_id,
        status=row.status,
        enrolled_date=row.enrolled_date,
    )


def _payment_record(row: Payment) -> PaymentRecord:
    return PaymentRecord(
        id=row.id,
        enrollment_id=row.enrollment_id,
        base_amount=row.base_amount,
        discount_amount=row.discount_amount,
        total_amount=row.total_amount,
        paid_amount=row.paid_amount,
        status=row.status,
        plan_type=row.plan_type,
        multi_course_discount=row.multi_course_discount,
        discount_notes=row.discount_notes,
    )


def _installment_record(row: Installment) -> InstallmentRecord:
    return InstallmentRecord(
        id=row.id,
        payment_id=row.payment_id,
        number=row.number,
        amount=row.amount,
        due_type=row.due_type,
        due_date=row.due_date,
        status=row.status,
        paid_date=row.paid_date,
        payment_method=row.payment_method,
        notes=row.notes,
    )


def _expense_record(row: Expense) -> ExpenseRecord:
    return ExpenseRecord(
        id=row.id,
        batch_id=row.batch_id,
        title=row.title,
        amount=row.amount,
        expense_date=row.expense_date,
        notes=row.notes,
        created_by=row.created_by,
    )


class SqlLedgerStore(LedgerStore):
    """LedgerStore backed by an async SQLAlchemy session.

    Attributes:
        db: Request-scoped async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the store.

        Args:
            db: Async database session for the ledger database.
        """
        self.db = db

    async def _commit(self, action: str) -> None:
        """Commit pending work, wrapping driver errors.

        Args:
            action: Short description used in the error message.

        Raises:
            StoreError: If the commit fails.
        """
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Store write failed: %s: %s", action, e)
            raise StoreError(f"Failed to {action}") from e

    async def _read(self, query, action: str):
        """Run a query, wrapping driver errors.

        A failed statement aborts the transaction on PostgreSQL, so the
        session is rolled back before the error propagates and later
        compensating writes start clean.

        Raises:
            StoreError: If the query fails.
        """
        try:
            return await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Store read failed: %s: %s", action, e)
            raise StoreError(f"Failed to {action}") from e

    async def _scalar(self, query, action: str):
        result = await self._read(query, action)
        return result.scalar_one_or_none()

    async def _scalars(self, query, action: str) -> list:
        result = await self._read(query, action)
        return list(result.scalars().all())

    async def _execute(self, statement, action: str):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Store write failed: %s: %s", action, e)
            raise StoreError(f"Failed to {action}") from e

    # =========================================================================
    # Directory and catalog reads
    # =========================================================================

    async def get_batch(self, batch_id: str) -> BatchRecord | None:
        query = (
            select(Batch, Course.fee, Course.title)
            .join(Course, Batch.course_id == Course.id)
            .where(Batch.id == batch_id)
        )
        result = await self._read(query, "load batch")
        row = result.one_or_none()
        if row is None:
            return None

        batch, fee, title = row
        return BatchRecord(
            id=batch.id,
            course_id=batch.course_id,
            instructor_id=batch.instructor_id,
            batch_name=batch.batch_name,
            max_students=batch.max_students,
            start_date=batch.start_date,
            instructor_salary=batch.instructor_salary,
            course_fee=fee or 0,
            course_title=title,
        )

    async def get_student(self, student_id: str) -> StudentRecord | None:
        query = select(User).where(
            User.id == student_id,
            User.role == UserRole.STUDENT.value,
        )
        user = await self._scalar(query, "load student")
        if user is None:
            return None
        return StudentRecord(id=user.id, name=user.name)

    async def get_instructor(self, instructor_id: str) -> InstructorRecord | None:
        user = await self._scalar(select(User).where(User.id == instructor_id), "load instructor")
        if user is None:
            return None
        return InstructorRecord(
            id=user.id,
            payment_model=user.payment_model,
            profit_share_percentage=Decimal(user.profit_share_percentage or 0),
        )

    # =========================================================================
    # Enrollment
    # =========================================================================

    async def count_batch_enrollments(self, batch_id: str) -> int:
        query = select(func.count()).select_from(Enrollment).where(Enrollment.batch_id == batch_id)
        return await self._scalar(query, "count batch enrollments") or 0

    async def count_student_enrollments(self, student_id: str) -> int:
        query = select(func.count()).select_from(Enrollment).where(Enrollment.student_id == student_id)
        return await self._scalar(query, "count student enrollments") or 0

    async def find_enrollment(self, student_id: str, batch_id: str) -> EnrollmentRecord | None:
        query = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.batch_id == batch_id,
        )
        row = await self._scalar(query, "load enrollment")
        return _enrollment_record(row) if row else None

    async def get_enrollment(self, enrollment_id: str) -> EnrollmentRecord | None:
        row = await self._scalar(
            select(Enrollment).where(Enrollment.id == enrollment_id),
            "load enrollment",
        )
        return _enrollment_record(row) if row else None

    async def insert_enrollment(
        self,
        student_id: str,
        batch_id: str,
        status: str,
        enrolled_date: date,
    ) -> EnrollmentRecord:
        enrollment = Enrollment(
            student_id=student_id,
            batch_id=batch_id,
            status=status,
            enrolled_date=enrolled_date,
        )
        self.db.add(enrollment)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(
                "Unique constraint rejected enrollment: student=%s, batch=%s",
                student_id,
                batch_id,
            )
            raise AlreadyEnrolledError("Student is already enrolled in this batch") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Failed to create enrollment") from e
        return _enrollment_record(enrollment)

    async def delete_enrollment(self, enrollment_id: str) -> None:
        payment_ids = select(Payment.id).where(Payment.enrollment_id == enrollment_id)
        await self._execute(
            delete(Installment).where(Installment.payment_id.in_(payment_ids)),
            "delete installments",
        )
        await self._execute(
            delete(Payment).where(Payment.enrollment_id == enrollment_id),
            "delete payment",
        )
        await self._execute(
            delete(Enrollment).where(Enrollment.id == enrollment_id),
            "delete enrollment",
        )
        await self._commit("delete enrollment")

    # =========================================================================
    # Payments and installments
    # =========================================================================

    async def insert_payment(self, payment: NewPayment) -> PaymentRecord:
        row = Payment(
            enrollment_id=payment.enrollment_id,
            base_amount=payment.base_amount,
            discount_amount=payment.discount_amount,
            total_amount=payment.total_amount,
            paid_amount=payment.paid_amount,
            status=payment.status,
            plan_type=payment.plan_type,
            multi_course_discount=payment.multi_course_discount,
            discount_notes=payment.discount_notes,
        )
        self.db.add(row)
        await self._commit("create payment record")
        return _payment_record(row)

    async def get_payment(self, payment_id: str) -> PaymentRecord | None:
        row = await self._scalar(select(Payment).where(Payment.id == payment_id), "load payment")
        return _payment_record(row) if row else None

    async def get_payment_for_enrollment(self, enrollment_id: str) -> PaymentRecord | None:
        row = await self._scalar(
            select(Payment).where(Payment.enrollment_id == enrollment_id),
            "load payment",
        )
        return _payment_record(row) if row else None

    async def update_payment_progress(self, payment_id: str, paid_amount: int, status: str) -> None:
        await self._execute(
            update(Payment)
            .where(Payment.id == payment_id)
            .values(paid_amount=paid_amount, status=status),
            "update payment record",
        )
        await self._commit("update payment record")

    async def delete_payment(self, payment_id: str) -> None:
        await self._execute(
            delete(Installment).where(Installment.payment_id == payment_id),
            "delete installments",
        )
        await self._execute(delete(Payment).where(Payment.id == payment_id), "delete payment")
        await self._commit("delete payment")

    async def insert_installments(
        self,
        payment_id: str,
        specs: Sequence[InstallmentSpec],
    ) -> list[InstallmentRecord]:
        rows = [
            Installment(
                payment_id=payment_id,
                number=spec.number,
                amount=spec.amount,
                due_type=spec.due_type,
                due_date=spec.due_date,
                status=spec.status,
                paid_date=spec.paid_date,
                payment_method=spec.payment_method,
                notes=spec.notes,
            )
            for spec in specs
        ]
        self.db.add_all(rows)
        await self._commit("create payment installments")
        return [_installment_record(row) for row in rows]

    async def list_installments(self, payment_id: str) -> list[InstallmentRecord]:
        rows = await self._scalars(
            select(Installment)
            .where(Installment.payment_id == payment_id)
            .order_by(Installment.number),
            "load installments",
        )
        return [_installment_record(row) for row in rows]

    async def get_installment(self, installment_id: str) -> InstallmentRecord | None:
        row = await self._scalar(
            select(Installment).where(Installment.id == installment_id),
            "load installment",
        )
        return _installment_record(row) if row else None

    async def mark_installment_paid(
        self,
        installment_id: str,
        paid_date: date,
        payment_method: str,
        notes: str | None,
    ) -> None:
        await self._execute(
            update(Installment)
            .where(Installment.id == installment_id)
            .values(
                paid_date=paid_date,
                payment_method=payment_method,
                notes=notes,
                status=InstallmentStatus.PAID.value,
            ),
            "update installment",
        )
        await self._commit("update installment")

    async def reset_installment(self, installment_id: str, status: str) -> None:
        await self._execute(
            update(Installment)
            .where(Installment.id == installment_id)
            .values(paid_date=None, payment_method=None, notes=None, status=status),
            "revert installment",
        )
        await self._commit("revert installment")

    async def mark_overdue_installments(self, as_of: date) -> int:
        result = await self._execute(
            update(Installment)
            .where(
                Installment.status == InstallmentStatus.PENDING.value,
                Installment.due_date < as_of,
            )
            .values(status=InstallmentStatus.OVERDUE.value),
            "mark overdue installments",
        )
        await self._commit("mark overdue installments")
        return result.rowcount or 0

    # =========================================================================
    # Salary inputs and output
    # =========================================================================

    async def sum_payment_totals(self, batch_id: str) -> int:
        query = (
            select(func.coalesce(func.sum(Payment.total_amount), 0))
            .join(Enrollment, Payment.enrollment_id == Enrollment.id)
            .where(Enrollment.batch_id == batch_id)
        )
        return int(await self._scalar(query, "sum batch income") or 0)

    async def sum_expenses(self, batch_id: str) -> int:
        query = select(func.coalesce(func.sum(Expense.amount), 0)).where(Expense.batch_id == batch_id)
        return int(await self._scalar(query, "sum batch expenses") or 0)

    async def set_instructor_salary(self, batch_id: str, salary: int) -> None:
        await self._execute(
            update(Batch).where(Batch.id == batch_id).values(instructor_salary=salary),
            "update instructor salary",
        )
        await self._commit("update instructor salary")

    # =========================================================================
    # Expenses and batch finance
    # =========================================================================

    async def get_expense(self, expense_id: str) -> ExpenseRecord | None:
        row = await self._scalar(select(Expense).where(Expense.id == expense_id), "load expense")
        return _expense_record(row) if row else None

    async def insert_expense(
        self,
        batch_id: str,
        title: str,
        amount: int,
        expense_date: date,
        notes: str | None,
        created_by: str | None,
    ) -> ExpenseRecord:
        row = Expense(
            batch_id=batch_id,
            title=title,
            amount=amount,
            expense_date=expense_date,
            notes=notes,
            created_by=created_by,
        )
        self.db.add(row)
        await self._commit("create expense")
        return _expense_record(row)

    async def update_expense(
        self,
        expense_id: str,
        title: str,
        amount: int,
        expense_date: date,
        notes: str | None,
    ) -> ExpenseRecord:
        await self._execute(
            update(Expense)
            .where(Expense.id == expense_id)
            .values(title=title, amount=amount, expense_date=expense_date, notes=notes),
            "update expense",
        )
        await self._commit("update expense")
        row = await self._scalar(select(Expense).where(Expense.id == expense_id), "load expense")
        if row is None:
            raise ExpenseNotFoundError("Expense not found")
        return _expense_record(row)

    async def delete_expense(self, expense_id: str) -> None:
        await self._execute(delete(Expense).where(Expense.id == expense_id), "delete expense")
        await self._commit("delete expense")

    async def batch_finance_rows(self, batch_id: str | None = None) -> list[BatchFinanceRow]:
        income = (
            select(
                Enrollment.batch_id.label("batch_id"),
                func.sum(Installment.amount).label("income"),
            )
            .join(Payment, Payment.enrollment_id == Enrollment.id)
            .join(Installment, Installment.payment_id == Payment.id)
            .where(Installment.status == InstallmentStatus.PAID.value)
            .group_by(Enrollment.batch_id)
            .subquery()
        )
        expenses = (
            select(
                Expense.batch_id.label("batch_id"),
                func.sum(Expense.amount).label("total"),
                func.count(Expense.id).label("count"),
            )
            .group_by(Expense.batch_id)
            .subquery()
        )
        query = (
            select(
                Batch.id,
                Batch.batch_name,
                Course.title,
                Batch.instructor_salary,
                func.coalesce(income.c.income, 0),
                func.coalesce(expenses.c.total, 0),
                func.coalesce(expenses.c.count, 0),
            )
            .join(Course, Batch.course_id == Course.id)
            .outerjoin(income, income.c.batch_id == Batch.id)
            .outerjoin(expenses, expenses.c.batch_id == Batch.id)
        )
        if batch_id:
            query = query.where(Batch.id == batch_id)

        result = await self._read(query, "load batch finances")

        return [
            BatchFinanceRow(
                batch_id=row[0],
                batch_name=row[1],
                course_title=row[2],
                instructor_salary=int(row[3] or 0),
                income=int(row[4]),
                expenses=int(row[5]),
                expense_count=int(row[6]),
            )
            for row in result.all()
        ]

    async def delete_batch(self, batch_id: str) -> None:
        await self._execute(delete(Expense).where(Expense.batch_id == batch_id), "delete expenses")
        await self._execute(delete(Batch).where(Batch.id == batch_id), "delete batch")
        await self._commit("delete batch")
