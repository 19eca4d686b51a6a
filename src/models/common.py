# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations for ledger records.

Values are stored as plain strings in the database; the enums exist so that
services and API models agree on the vocabulary.
"""

from enum import Enum


class UserRole(str, Enum):
    """Directory roles relevant to the ledger."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class PaymentModel(str, Enum):
    """How an instructor is compensated."""

    FIXED_SALARY = "fixed_salary"
    PROFIT_SHARE = "profit_share"


class EnrollmentStatus(str, Enum):
    """Enrollment lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


class PlanType(str, Enum):
    """Tuition payment plans."""

    FULL = "full"
    INSTALLMENT_2 = "installment_2"


class PaymentStatus(str, Enum):
    """Aggregate payment status, derived from paid vs total amount."""

    PARTIAL = "partial"
    PAID = "paid"


class InstallmentStatus(str, Enum):
    """Status of a single installment."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class DueType(str, Enum):
    """Rule that produced an installment's due date."""

    ENROLLMENT = "enrollment"
    COURSE_START_PLUS_4W = "course_start_plus_4w"
