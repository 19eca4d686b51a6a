# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API endpoints.

This module provides endpoints for enrolling students into batches:
- POST /enrollments - Enroll a student, creating payment and installments
- DELETE /enrollments/{enrollment_id} - Remove an enrollment
- GET /enrollments/{enrollment_id}/payment - Payment and installments
"""

import logging

from fastapi import APIRouter, Depends, status

from src.api.admin.errors import ledger_http_exception
from src.api.dependencies import get_enrollment_service
from src.core.config import Settings, get_settings
from src.domains.enrollment.schedule import InitialPayment
from src.domains.enrollment.service import EnrollmentService
from src.domains.ledger.errors import LedgerError
from src.models.enrollment import (
    EnrollmentPaymentResponse,
    EnrollRequest,
    EnrollResponse,
    InstallmentResponse,
    UnenrollResponse,
)
from src.utils.datetime import utc_today

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/enrollments",
    response_model=EnrollResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Enroll student",
    description="Enroll a student in a batch and create the tuition ledger.",
)
async def enroll_student(
    data: EnrollRequest,
    service: EnrollmentService = Depends(get_enrollment_service),
    settings: Settings = Depends(get_settings),
) -> EnrollResponse:
    """Enroll a student in a batch.

    Args:
        data: Enrollment request.
        service: Enrollment service.
        settings: Supplies the plan used when the request names none.

    Returns:
        Enrollment response.

    Raises:
        HTTPException: If batch/student not found, batch full or already enrolled.
    """
    plan_type = data.payment_plan.value if data.payment_plan else settings.ledger.default_plan_type
    logger.info(
        "Enrolling student: student=%s, batch=%s, plan=%s",
        data.student_id,
        data.batch_id,
        plan_type,
    )

    initial_payment = None
    if data.initial_payment:
        initial_payment = InitialPayment(
            paid_date=data.payment_date or utc_today(),
            payment_method=data.payment_method,
            notes=data.payment_notes,
        )

    try:
        result = await service.enroll(
            batch_id=data.batch_id,
            student_id=data.student_id,
            plan_type=plan_type,
            initial_payment=initial_payment,
        )
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return EnrollResponse(
        enrollment_id=result.enrollment_id,
        payment_id=result.payment_id,
        discount_applied=result.discount_applied,
        total_amount=result.total_amount,
        paid_amount=result.paid_amount,
        warnings=result.warnings or None,
    )


@router.delete(
    "/enrollments/{enrollment_id}",
    response_model=UnenrollResponse,
    response_model_exclude_none=True,
    summary="Remove enrollment",
)
async def remove_enrollment(
    enrollment_id: str,
    service: EnrollmentService = Depends(get_enrollment_service),
) -> UnenrollResponse:
    """Remove an enrollment with its payment and installments."""
    try:
        warnings = await service.unenroll(enrollment_id)
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return UnenrollResponse(
        message="Student removed from batch successfully",
        warnings=warnings or None,
    )


@router.get(
    "/enrollments/{enrollment_id}/payment",
    response_model=EnrollmentPaymentResponse,
    summary="Get enrollment payment",
)
async def get_enrollment_payment(
    enrollment_id: str,
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentPaymentResponse:
    """Get the payment record and installment schedule of an enrollment."""
    try:
        ledger = await service.get_ledger(enrollment_id)
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    payment = ledger.payment
    return EnrollmentPaymentResponse(
        enrollment_id=ledger.enrollment.id,
        student_id=ledger.enrollment.student_id,
        batch_id=ledger.enrollment.batch_id,
        enrolled_date=ledger.enrollment.enrolled_date,
        payment_id=payment.id,
        base_amount=payment.base_amount,
        discount_amount=payment.discount_amount,
        total_amount=payment.total_amount,
        paid_amount=payment.paid_amount,
        status=payment.status,
        plan_type=payment.plan_type,
        multi_course_discount=payment.multi_course_discount,
        discount_notes=payment.discount_notes,
        installments=[InstallmentResponse.model_validate(i) for i in ledger.installments],
    )
