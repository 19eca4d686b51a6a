# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Plain value records passed between the ledger store and services.

Services never hold ORM instances; the store maps rows into these frozen
dataclasses. This keeps service logic independent of session state and lets
tests substitute an in-memory store.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class BatchRecord:
    """A batch together with the fee of its course."""

    id: str
    course_id: str
    instructor_id: str | None
    batch_name: str
    max_students: int
    start_date: date | None
    instructor_salary: int
    course_fee: int
    course_title: str = ""


@dataclass(frozen=True)
class StudentRecord:
    """A directory user with the student role."""

    id: str
    name: str = ""


@dataclass(frozen=True)
class InstructorRecord:
    """Compensation terms of an instructor."""

    id: str
    payment_model: str | None
    profit_share_percentage: Decimal


@dataclass(frozen=True)
class EnrollmentRecord:
    """A student's place in a batch."""

    id: str
    student_id: str
    batch_id: str
    status: str
    enrolled_date: date


@dataclass(frozen=True)
class NewPayment:
    """Fields for a payment row about to be inserted."""

    enrollment_id: str
    base_amount: int
    discount_amount: int
    total_amount: int
    plan_type: str
    multi_course_discount: bool
    discount_notes: str | None
    paid_amount: int = 0
    status: str = "partial"


@dataclass(frozen=True)
class PaymentRecord:
    """The tuition obligation of an enrollment."""

    id: str
    enrollment_id: str
    base_amount: int
    discount_amount: int
    total_amount: int
    paid_amount: int
    status: str
    plan_type: str
    multi_course_discount: bool
    discount_notes: str | None


@dataclass(frozen=True)
class InstallmentRecord:
    """One scheduled installment of a payment."""

    id: str
    payment_id: str
    number: int
    amount: int
    due_type: str
    due_date: date
    status: str
    paid_date: date | None = None
    payment_method: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class ExpenseRecord:
    """A cost booked against a batch."""

    id: str
    batch_id: str
    title: str
    amount: int
    expense_date: date
    notes: str | None = None
    created_by: str | None = None


@dataclass(frozen=True)
class BatchFinanceRow:
    """Raw income and expense totals for one batch."""

    batch_id: str
    batch_name: str
    course_title: str
    instructor_salary: int
    income: int
    expenses: int
    expense_count: int
