# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exception hierarchy for the tuition ledger.

Every error carries a message that is safe to show to an administrator.
API routes map the four families to HTTP statuses:

- LedgerValidationError: 400
- LedgerNotFoundError: 404
- LedgerConflictError: 400 (expected business conditions, not bugs)
- LedgerIntegrityError / StoreError: 500
"""


class LedgerError(Exception):
    """Base exception for ledger errors."""

    pass


class LedgerValidationError(LedgerError):
    """Raised when input is missing or malformed."""

    pass


class LedgerNotFoundError(LedgerError):
    """Raised when a referenced record does not exist."""

    pass


class BatchNotFoundError(LedgerNotFoundError):
    """Raised when batch is not found."""

    pass


class StudentNotFoundError(LedgerNotFoundError):
    """Raised when student is not found or the user is not a student."""

    pass


class EnrollmentNotFoundError(LedgerNotFoundError):
    """Raised when enrollment is not found."""

    pass


class PaymentNotFoundError(LedgerNotFoundError):
    """Raised when payment record is not found."""

    pass


class InstallmentNotFoundError(LedgerNotFoundError):
    """Raised when installment is not found."""

    pass


class ExpenseNotFoundError(LedgerNotFoundError):
    """Raised when expense is not found."""

    pass


class LedgerConflictError(LedgerError):
    """Raised when the ledger state forbids the requested change."""

    pass


class BatchFullError(LedgerConflictError):
    """Raised when a batch has reached max_students."""

    pass


class AlreadyEnrolledError(LedgerConflictError):
    """Raised when student is already enrolled in the batch."""

    pass


class InstallmentAlreadyPaidError(LedgerConflictError):
    """Raised when an installment has already been paid."""

    pass


class BatchHasEnrollmentsError(LedgerConflictError):
    """Raised when deleting a batch that still has enrollments."""

    pass


class LedgerIntegrityError(LedgerError):
    """Raised when ledger records disagree with each other.

    Also raised when a multi-write operation fails part way and has been
    compensated.
    """

    pass


class CompensationFailedError(LedgerIntegrityError):
    """Raised when a compensating write itself fails.

    Attributes:
        dangling: Table name to record id for rows left behind.
    """

    def __init__(self, message: str, dangling: dict[str, str]) -> None:
        super().__init__(message)
        self.dangling = dangling


class StoreError(LedgerError):
    """Raised when the backing store rejects or fails an operation.

    The message is a generic description of the failed action; the driver
    error is chained as ``__cause__`` and never shown to clients.
    """

    pass
