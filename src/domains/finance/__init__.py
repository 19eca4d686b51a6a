# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch finance domain package."""

from src.domains.finance.service import (
    BatchFinanceSummary,
    ExpenseResult,
    FinanceService,
    normalize_amount,
)

__all__ = [
    "FinanceService",
    "BatchFinanceSummary",
    "ExpenseResult",
    "normalize_amount",
]
