# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Instructor salary domain package."""

from src.domains.salary.service import SalaryResult, SalaryService, compute_profit_share

__all__ = [
    "SalaryService",
    "SalaryResult",
    "compute_profit_share",
]
