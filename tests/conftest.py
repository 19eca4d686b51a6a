# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- An in-memory LedgerStore with failure injection
- Services wired to that store
- Environment variables for settings tests
"""

import asyncio
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest

from src.core.config import clear_settings_cache
from src.domains.enrollment.discount import DiscountPolicy
from src.domains.enrollment.service import EnrollmentService
from src.domains.finance.service import FinanceService
from src.domains.ledger.errors import AlreadyEnrolledError, StoreError
from src.domains.ledger.locks import BatchLockRegistry
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
from src.domains.ledger.store import LedgerStore
from src.domains.payment.service import PaymentService
from src.domains.salary.service import SalaryService


# =============================================================================
# In-memory ledger store
# =============================================================================


class InMemoryLedgerStore(LedgerStore):
    """LedgerStore backed by dictionaries.

    Write methods named in ``fail_on`` raise StoreError, the same way the
    SQL store reports a failed statement. ``writes`` records every write
    method called, in order. ``count_batch_enrollments`` yields to the event
    loop after counting, as a database round trip would.
    """

    def __init__(self) -> None:
        self.courses: dict[str, dict[str, Any]] = {}
        self.users: dict[str, dict[str, Any]] = {}
        self.batches: dict[str, dict[str, Any]] = {}
        self.enrollments: dict[str, EnrollmentRecord] = {}
        self.payments: dict[str, PaymentRecord] = {}
        self.installments: dict[str, InstallmentRecord] = {}
        self.expenses: dict[str, ExpenseRecord] = {}
        self.fail_on: set[str] = set()
        self.writes: list[str] = []

    # Seeding -----------------------------------------------------------------

    def add_course(self, fee: int, title: str = "Python Basics") -> str:
        course_id = str(uuid4())
        self.courses[course_id] = {"title": title, "fee": fee}
        return course_id

    def add_student(self, name: str = "Student") -> str:
        user_id = str(uuid4())
        self.users[user_id] = {"role": "student", "name": name}
        return user_id

    def add_instructor(
        self,
        payment_model: str = "profit_share",
        percentage: str | Decimal = "30",
    ) -> str:
        user_id = str(uuid4())
        self.users[user_id] = {
            "role": "instructor",
            "payment_model": payment_model,
            "profit_share_percentage": Decimal(percentage),
        }
        return user_id

    def add_batch(
        self,
        course_id: str,
        max_students: int = 10,
        start_date: date | None = date(2025, 3, 1),
        instructor_id: str | None = None,
        batch_name: str = "Batch 1",
        instructor_salary: int = 0,
    ) -> str:
        batch_id = str(uuid4())
        self.batches[batch_id] = {
            "course_id": course_id,
            "instructor_id": instructor_id,
            "batch_name": batch_name,
            "max_students": max_students,
            "start_date": start_date,
            "instructor_salary": instructor_salary,
        }
        return batch_id

    def payment_for(self, enrollment_id: str) -> PaymentRecord | None:
        for payment in self.payments.values():
            if payment.enrollment_id == enrollment_id:
                return payment
        return None

    def installments_for(self, payment_id: str) -> list[InstallmentRecord]:
        rows = [i for i in self.installments.values() if i.payment_id == payment_id]
        return sorted(rows, key=lambda i: i.number)

    def _write(self, name: str) -> None:
        self.writes.append(name)
        if name in self.fail_on:
            raise StoreError(f"Failed to {name.replace('_', ' ')}")

    # Reads -------------------------------------------------------------------

    async def get_batch(self, batch_id: str) -> BatchRecord | None:
        row = self.batches.get(batch_id)
        if row is None:
            return None
        course = self.courses[row["course_id"]]
        return BatchRecord(
            id=batch_id,
            course_id=row["course_id"],
            instructor_id=row["instructor_id"],
            batch_name=row["batch_name"],
            max_students=row["max_students"],
            start_date=row["start_date"],
            instructor_salary=row["instructor_salary"],
            course_fee=course["fee"],
            course_title=course["title"],
        )

    async def get_student(self, student_id: str) -> StudentRecord | None:
        row = self.users.get(student_id)
        if row is None or row["role"] != "student":
            return None
        return StudentRecord(id=student_id, name=row["name"])

    async def get_instructor(self, instructor_id: str) -> InstructorRecord | None:
        row = self.users.get(instructor_id)
        if row is None:
            return None
        return InstructorRecord(
            id=instructor_id,
            payment_model=row.get("payment_model"),
            profit_share_percentage=row.get("profit_share_percentage") or Decimal(0),
        )

    async def count_batch_enrollments(self, batch_id: str) -> int:
        count = sum(1 for e in self.enrollments.values() if e.batch_id == batch_id)
        await asyncio.sleep(0)
        return count

    async def count_student_enrollments(self, student_id: str) -> int:
        return sum(1 for e in self.enrollments.values() if e.student_id == student_id)

    async def find_enrollment(self, student_id: str, batch_id: str) -> EnrollmentRecord | None:
        for e in self.enrollments.values():
            if e.student_id == student_id and e.batch_id == batch_id:
                return e
        return None

    async def get_enrollment(self, enrollment_id: str) -> EnrollmentRecord | None:
        return self.enrollments.get(enrollment_id)

    async def get_payment(self, payment_id: str) -> PaymentRecord | None:
        return self.payments.get(payment_id)

    async def get_payment_for_enrollment(self, enrollment_id: str) -> PaymentRecord | None:
        return self.payment_for(enrollment_id)

    async def list_installments(self, payment_id: str) -> list[InstallmentRecord]:
        return self.installments_for(payment_id)

    async def get_installment(self, installment_id: str) -> InstallmentRecord | None:
        return self.installments.get(installment_id)

    async def sum_payment_totals(self, batch_id: str) -> int:
        return sum(
            p.total_amount
            for p in self.payments.values()
            if self.enrollments[p.enrollment_id].batch_id == batch_id
        )

    async def sum_expenses(self, batch_id: str) -> int:
        return sum(e.amount for e in self.expenses.values() if e.batch_id == batch_id)

    async def get_expense(self, expense_id: str) -> ExpenseRecord | None:
        return self.expenses.get(expense_id)

    async def batch_finance_rows(self, batch_id: str | None = None) -> list[BatchFinanceRow]:
        rows = []
        for bid, batch in self.batches.items():
            if batch_id and bid != batch_id:
                continue
            enrollment_ids = {e.id for e in self.enrollments.values() if e.batch_id == bid}
            payment_ids = {
                p.id for p in self.payments.values() if p.enrollment_id in enrollment_ids
            }
            income = sum(
                i.amount
                for i in self.installments.values()
                if i.payment_id in payment_ids and i.status == "paid"
            )
            expenses = [e for e in self.expenses.values() if e.batch_id == bid]
            rows.append(
                BatchFinanceRow(
                    batch_id=bid,
                    batch_name=batch["batch_name"],
                    course_title=self.courses[batch["course_id"]]["title"],
                    instructor_salary=batch["instructor_salary"],
                    income=income,
                    expenses=sum(e.amount for e in expenses),
                    expense_count=len(expenses),
                )
            )
        return rows

    # Writes ------------------------------------------------------------------

    async def insert_enrollment(
        self,
        student_id: str,
        batch_id: str,
        status: str,
        enrolled_date: date,
    ) -> EnrollmentRecord:
        self._write("insert_enrollment")
        if await self.find_enrollment(student_id, batch_id):
            raise AlreadyEnrolledError("Student is already enrolled in this batch")
        record = EnrollmentRecord(
            id=str(uuid4()),
            student_id=student_id,
            batch_id=batch_id,
            status=status,
            enrolled_date=enrolled_date,
        )
        self.enrollments[record.id] = record
        return record

    async def delete_enrollment(self, enrollment_id: str) -> None:
        self._write("delete_enrollment")
        payment = self.payment_for(enrollment_id)
        if payment is not None:
            self._drop_payment(payment.id)
        self.enrollments.pop(enrollment_id, None)

    async def insert_payment(self, payment: NewPayment) -> PaymentRecord:
        self._write("insert_payment")
        record = PaymentRecord(
            id=str(uuid4()),
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
        self.payments[record.id] = record
        return record

    async def update_payment_progress(self, payment_id: str, paid_amount: int, status: str) -> None:
        self._write("update_payment_progress")
        self.payments[payment_id] = replace(
            self.payments[payment_id],
            paid_amount=paid_amount,
            status=status,
        )

    async def delete_payment(self, payment_id: str) -> None:
        self._write("delete_payment")
        self._drop_payment(payment_id)

    def _drop_payment(self, payment_id: str) -> None:
        for installment in self.installments_for(payment_id):
            del self.installments[installment.id]
        self.payments.pop(payment_id, None)

    async def insert_installments(self, payment_id: str, specs) -> list[InstallmentRecord]:
        self._write("insert_installments")
        records = []
        for spec in specs:
            record = InstallmentRecord(
                id=str(uuid4()),
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
            self.installments[record.id] = record
            records.append(record)
        return records

    async def mark_installment_paid(
        self,
        installment_id: str,
        paid_date: date,
        payment_method: str,
        notes: str | None,
    ) -> None:
        self._write("mark_installment_paid")
        self.installments[installment_id] = replace(
            self.installments[installment_id],
            status="paid",
            paid_date=paid_date,
            payment_method=payment_method,
            notes=notes,
        )

    async def reset_installment(self, installment_id: str, status: str) -> None:
        self._write("reset_installment")
        self.installments[installment_id] = replace(
            self.installments[installment_id],
            status=status,
            paid_date=None,
            payment_method=None,
            notes=None,
        )

    async def mark_overdue_installments(self, as_of: date) -> int:
        self._write("mark_overdue_installments")
        count = 0
        for installment in list(self.installments.values()):
            if installment.status == "pending" and installment.due_date < as_of:
                self.installments[installment.id] = replace(installment, status="overdue")
                count += 1
        return count

    async def set_instructor_salary(self, batch_id: str, salary: int) -> None:
        self._write("set_instructor_salary")
        self.batches[batch_id]["instructor_salary"] = salary

    async def insert_expense(
        self,
        batch_id: str,
        title: str,
        amount: int,
        expense_date: date,
        notes: str | None,
        created_by: str | None,
    ) -> ExpenseRecord:
        self._write("insert_expense")
        record = ExpenseRecord(
            id=str(uuid4()),
            batch_id=batch_id,
            title=title,
            amount=amount,
            expense_date=expense_date,
            notes=notes,
            created_by=created_by,
        )
        self.expenses[record.id] = record
        return record

    async def update_expense(
        self,
        expense_id: str,
        title: str,
        amount: int,
        expense_date: date,
        notes: str | None,
    ) -> ExpenseRecord:
        self._write("update_expense")
        record = replace(
            self.expenses[expense_id],
            title=title,
            amount=amount,
            expense_date=expense_date,
            notes=notes,
        )
        self.expenses[expense_id] = record
        return record

    async def delete_expense(self, expense_id: str) -> None:
        self._write("delete_expense")
        self.expenses.pop(expense_id, None)

    async def delete_batch(self, batch_id: str) -> None:
        self._write("delete_batch")
        for expense in [e for e in self.expenses.values() if e.batch_id == batch_id]:
            del self.expenses[expense.id]
        self.batches.pop(batch_id, None)


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    """Provide an empty in-memory ledger store."""
    return InMemoryLedgerStore()


@pytest.fixture
def batch_locks() -> BatchLockRegistry:
    """Provide a lock registry private to the test."""
    return BatchLockRegistry()


@pytest.fixture
def salary_service(ledger_store) -> SalaryService:
    return SalaryService(ledger_store)


@pytest.fixture
def enrollment_service(ledger_store, salary_service, batch_locks) -> EnrollmentService:
    """Provide an enrollment service with default discount settings."""
    return EnrollmentService(
        store=ledger_store,
        salary=salary_service,
        discounts=DiscountPolicy(ledger_store, amount=10000, currency="MMK"),
        locks=batch_locks,
    )


@pytest.fixture
def payment_service(ledger_store, salary_service) -> PaymentService:
    return PaymentService(store=ledger_store, salary=salary_service)


@pytest.fixture
def finance_service(ledger_store, salary_service) -> FinanceService:
    return FinanceService(store=ledger_store, salary=salary_service)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "staging",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "LEDGER_DB_HOST": "localhost",
        "LEDGER_DB_PORT": "35432",
        "LEDGER_DB_USER": "ledger",
        "LEDGER_DB_PASSWORD": "test_password",
        "LEDGER_DB_DATABASE": "tuition_ledger_test",
        "LEDGER_MULTI_COURSE_DISCOUNT": "15000",
    }


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Drop cached settings so environment changes take effect per test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (API wiring, no services)"
    )
