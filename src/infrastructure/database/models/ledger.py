# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the catalog directory and the tuition ledger.

Courses, users and batches are owned by the catalog and directory services;
the ledger reads them and only ever writes ``batches.instructor_salary``.
Enrollments, payments, installments and expenses are ledger-owned.

Foreign keys from ledger rows cascade on delete at the database level. The
store also deletes children explicitly, so behavior does not depend on the
backend enforcing foreign keys.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.utils.datetime import utc_today


class Course(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A course offered by the institute."""

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    fee: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    batches: Mapped[list["Batch"]] = relationship(back_populates="course")


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Directory entry for students, instructors and administrators."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="student")
    payment_model: Mapped[str | None] = mapped_column(String(20), nullable=True)
    profit_share_percentage: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "profit_share_percentage IS NULL OR "
            "(profit_share_percentage >= 0 AND profit_share_percentage <= 100)",
            name="ck_users_profit_share_range",
        ),
    )


class Batch(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A scheduled offering of a course."""

    __tablename__ = "batches"

    course_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("courses.id"),
        nullable=False,
        index=True,
    )
    instructor_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    batch_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    max_students: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    instructor_salary: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    course: Mapped[Course] = relationship(back_populates="batches")
    instructor: Mapped[User | None] = relationship()


class Enrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Links one student to one batch."""

    __tablename__ = "enrollments"

    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    enrolled_date: Mapped[date] = mapped_column(Date, nullable=False, default=utc_today)

    __table_args__ = (
        UniqueConstraint("student_id", "batch_id", name="uq_enrollments_student_batch"),
    )


class Payment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Aggregate tuition obligation for one enrollment."""

    __tablename__ = "payments"

    enrollment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("enrollments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    base_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    paid_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="partial")
    plan_type: Mapped[str] = mapped_column(String(20), nullable=False)
    multi_course_discount: Mapped[bool] = mapped_column(nullable=False, default=False)
    discount_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    installments: Mapped[list["Installment"]] = relationship(
        back_populates="payment",
        order_by="Installment.number",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_payments_total_non_negative"),
        CheckConstraint("paid_amount <= total_amount", name="ck_payments_paid_within_total"),
        CheckConstraint("plan_type IN ('full', 'installment_2')", name="ck_payments_plan_type"),
        CheckConstraint("status IN ('partial', 'paid')", name="ck_payments_status"),
    )


class Installment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One scheduled partial payment."""

    __tablename__ = "payment_installments"

    payment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    due_type: Mapped[str] = mapped_column(String(30), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    payment: Mapped[Payment] = relationship(back_populates="installments")

    __table_args__ = (
        UniqueConstraint("payment_id", "number", name="uq_installments_payment_number"),
        CheckConstraint("number IN (1, 2)", name="ck_installments_number"),
        CheckConstraint(
            "status IN ('pending', 'paid', 'overdue')",
            name="ck_installments_status",
        ),
    )


class Expense(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A cost booked against a batch, deducted before profit sharing."""

    __tablename__ = "batch_expenses"

    batch_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, default=utc_today)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
