# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tuition ledger package: store, records, errors and batch locks."""

from src.domains.ledger.errors import (
    AlreadyEnrolledError,
    BatchFullError,
    BatchHasEnrollmentsError,
    BatchNotFoundError,
    CompensationFailedError,
    EnrollmentNotFoundError,
    ExpenseNotFoundError,
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    LedgerConflictError,
    LedgerError,
    LedgerIntegrityError,
    LedgerNotFoundError,
    LedgerValidationError,
    PaymentNotFoundError,
    StoreError,
    StudentNotFoundError,
)
from src.domains.ledger.locks import BatchLockRegistry, get_batch_locks
from src.domains.ledger.store import LedgerStore, SqlLedgerStore

__all__ = [
    "LedgerStore",
    "SqlLedgerStore",
    "BatchLockRegistry",
    "get_batch_locks",
    "LedgerError",
    "LedgerValidationError",
    "LedgerNotFoundError",
    "LedgerConflictError",
    "LedgerIntegrityError",
    "StoreError",
    "BatchNotFoundError",
    "StudentNotFoundError",
    "EnrollmentNotFoundError",
    "PaymentNotFoundError",
    "InstallmentNotFoundError",
    "ExpenseNotFoundError",
    "BatchFullError",
    "AlreadyEnrolledError",
    "InstallmentAlreadyPaidError",
    "BatchHasEnrollmentsError",
    "CompensationFailedError",
]
