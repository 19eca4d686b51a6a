# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin API router.

Aggregates the back-office ledger endpoints under /api/admin.
"""

from fastapi import APIRouter

from src.api.admin import batches, enrollments, payments

router = APIRouter(prefix="/api/admin")

router.include_router(enrollments.router, tags=["Enrollments"])
router.include_router(payments.router, tags=["Payments"])
router.include_router(batches.router, tags=["Batches"])

__all__ = ["router"]
