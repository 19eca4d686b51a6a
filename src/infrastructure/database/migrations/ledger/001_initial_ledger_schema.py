# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial ledger schema.

Creates the catalog tables the ledger reads (courses, users, batches) and
the ledger-owned tables (enrollments, payments, payment_installments,
batch_expenses).

Revision ID: 001_initial_ledger_schema
Revises:
Create Date: 2025-01-15
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_ledger_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True, nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create ledger tables."""

    # =========================================================================
    # Catalog and directory (read by the ledger)
    # =========================================================================
    op.create_table(
        "courses",
        _id_column(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("fee", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "users",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("payment_model", sa.String(20), nullable=True),
        sa.Column("profit_share_percentage", sa.Numeric(5, 2), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "profit_share_percentage IS NULL OR "
            "(profit_share_percentage >= 0 AND profit_share_percentage <= 100)",
            name="ck_users_profit_share_range",
        ),
    )

    op.create_table(
        "batches",
        _id_column(),
        sa.Column("course_id", sa.String(36), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("instructor_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("batch_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("max_students", sa.Integer, nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("instructor_salary", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_batches_course_id", "batches", ["course_id"])
    op.create_index("ix_batches_instructor_id", "batches", ["instructor_id"])

    # =========================================================================
    # Ledger
    # =========================================================================
    op.create_table(
        "enrollments",
        _id_column(),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "batch_id",
            sa.String(36),
            sa.ForeignKey("batches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("enrolled_date", sa.Date, nullable=False, server_default=sa.func.current_date()),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "batch_id", name="uq_enrollments_student_batch"),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_batch_id", "enrollments", ["batch_id"])

    op.create_table(
        "payments",
        _id_column(),
        sa.Column(
            "enrollment_id",
            sa.String(36),
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("base_amount", sa.Integer, nullable=False),
        sa.Column("discount_amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Integer, nullable=False),
        sa.Column("paid_amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="partial"),
        sa.Column("plan_type", sa.String(20), nullable=False),
        sa.Column("multi_course_discount", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("discount_notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("total_amount >= 0", name="ck_payments_total_non_negative"),
        sa.CheckConstraint("paid_amount <= total_amount", name="ck_payments_paid_within_total"),
        sa.CheckConstraint("plan_type IN ('full', 'installment_2')", name="ck_payments_plan_type"),
        sa.CheckConstraint("status IN ('partial', 'paid')", name="ck_payments_status"),
    )

    op.create_table(
        "payment_installments",
        _id_column(),
        sa.Column(
            "payment_id",
            sa.String(36),
            sa.ForeignKey("payments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("number", sa.Integer, nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("due_type", sa.String(30), nullable=False),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("paid_date", sa.Date, nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("payment_id", "number", name="uq_installments_payment_number"),
        sa.CheckConstraint("number IN (1, 2)", name="ck_installments_number"),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'overdue')",
            name="ck_installments_status",
        ),
    )
    op.create_index("ix_payment_installments_payment_id", "payment_installments", ["payment_id"])
    op.create_index(
        "ix_payment_installments_status_due_date",
        "payment_installments",
        ["status", "due_date"],
    )

    op.create_table(
        "batch_expenses",
        _id_column(),
        sa.Column(
            "batch_id",
            sa.String(36),
            sa.ForeignKey("batches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("expense_date", sa.Date, nullable=False, server_default=sa.func.current_date()),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_batch_expenses_batch_id", "batch_expenses", ["batch_id"])


def downgrade() -> None:
    """Drop ledger tables."""
    op.drop_table("batch_expenses")
    op.drop_table("payment_installments")
    op.drop_table("payments")
    op.drop_table("enrollments")
    op.drop_table("batches")
    op.drop_table("users")
    op.drop_table("courses")
