# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment API models."""

from datetime import date

from pydantic import BaseModel, Field


class RecordPaymentRequest(BaseModel):
    """Request to mark an installment as paid."""

    installment_id: str = Field(min_length=1)
    payment_id: str = Field(min_length=1)
    paid_date: date
    payment_method: str = Field(min_length=1, max_length=50)
    notes: str | None = None


class RecordPaymentResponse(BaseModel):
    """Response after recording an installment payment."""

    success: bool = True
    paid_amount: int
    payment_status: str
    warnings: list[str] | None = None


class MarkOverdueRequest(BaseModel):
    """Request to sweep past-due installments."""

    as_of: date | None = Field(
        default=None,
        description="Installments due before this date become overdue; today when omitted",
    )


class MarkOverdueResponse(BaseModel):
    success: bool = True
    updated: int
