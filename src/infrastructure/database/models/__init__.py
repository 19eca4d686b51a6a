# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the tuition ledger database."""

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    new_id,
)
from src.infrastructure.database.models.ledger import (
    Batch,
    Course,
    Enrollment,
    Expense,
    Installment,
    Payment,
    User,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "new_id",
    "Course",
    "User",
    "Batch",
    "Enrollment",
    "Payment",
    "Installment",
    "Expense",
]
