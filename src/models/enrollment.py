# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API models."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import PlanType


class EnrollRequest(BaseModel):
    """Request to enroll a student in a batch.

    When ``initial_payment`` is set the first installment (or the whole
    amount for a full plan) is recorded as paid at enrollment.
    """

    batch_id: str = Field(min_length=1, description="Batch to enroll into")
    student_id: str = Field(min_length=1, description="Student to enroll")
    payment_plan: PlanType | None = Field(
        default=None,
        description="Tuition plan; the configured default plan when omitted",
    )
    initial_payment: bool = Field(
        default=False,
        description="Whether money was collected at enrollment",
    )
    payment_method: str | None = Field(default=None, max_length=50)
    payment_date: date | None = Field(
        default=None,
        description="Date of the initial payment, enrollment date when omitted",
    )
    payment_notes: str | None = None


class EnrollResponse(BaseModel):
    """Response for a successful enrollment."""

    success: bool = True
    enrollment_id: str
    payment_id: str
    discount_applied: bool
    total_amount: int
    paid_amount: int
    warnings: list[str] | None = None


class UnenrollResponse(BaseModel):
    """Response for a removed enrollment."""

    success: bool = True
    message: str
    warnings: list[str] | None = None


class InstallmentResponse(BaseModel):
    """A payment installment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    payment_id: str
    number: int
    amount: int
    due_type: str
    due_date: date
    status: str
    paid_date: date | None = None
    payment_method: str | None = None
    notes: str | None = None


class EnrollmentPaymentResponse(BaseModel):
    """An enrollment's payment with its installments."""

    enrollment_id: str
    student_id: str
    batch_id: str
    enrolled_date: date
    payment_id: str
    base_amount: int
    discount_amount: int
    total_amount: int
    paid_amount: int
    status: str
    plan_type: str
    multi_course_discount: bool
    discount_notes: str | None = None
    installments: list[InstallmentResponse]
