# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment domain package."""

from src.domains.payment.service import PaymentResult, PaymentService

__all__ = [
    "PaymentService",
    "PaymentResult",
]
