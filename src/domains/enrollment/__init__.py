# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides student enrollment into batches including:
- Multi-course discount policy
- Installment schedule generation
- Enrollment orchestration with compensating rollback
"""

from src.domains.enrollment.discount import DiscountDecision, DiscountPolicy, decide_discount
from src.domains.enrollment.schedule import (
    InitialPayment,
    InstallmentSpec,
    generate_installments,
    initial_paid_amount,
    split_in_two,
)
from src.domains.enrollment.service import (
    EnrollmentLedger,
    EnrollmentResult,
    EnrollmentService,
    derive_payment_status,
)

__all__ = [
    "EnrollmentService",
    "EnrollmentResult",
    "EnrollmentLedger",
    "derive_payment_status",
    "DiscountPolicy",
    "DiscountDecision",
    "decide_discount",
    "InitialPayment",
    "InstallmentSpec",
    "generate_installments",
    "initial_paid_amount",
    "split_in_two",
]
