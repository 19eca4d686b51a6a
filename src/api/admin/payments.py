# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment API endpoints.

- POST /payments/record - Mark an installment as paid
- POST /payments/mark-overdue - Flag pending installments past due
"""

import logging

from fastapi import APIRouter, Depends

from src.api.admin.errors import ledger_http_exception
from src.api.dependencies import get_payment_service
from src.domains.ledger.errors import LedgerError
from src.domains.payment.service import PaymentService
from src.models.payment import (
    MarkOverdueRequest,
    MarkOverdueResponse,
    RecordPaymentRequest,
    RecordPaymentResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/payments/record",
    response_model=RecordPaymentResponse,
    response_model_exclude_none=True,
    summary="Record installment payment",
)
async def record_payment(
    data: RecordPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> RecordPaymentResponse:
    """Record that an installment has been paid.

    Args:
        data: Payment details.
        service: Payment service.

    Returns:
        New paid amount and payment status.

    Raises:
        HTTPException: If installment/payment not found or already paid.
    """
    try:
        result = await service.record_payment(
            installment_id=data.installment_id,
            payment_id=data.payment_id,
            paid_date=data.paid_date,
            payment_method=data.payment_method,
            notes=data.notes,
        )
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return RecordPaymentResponse(
        paid_amount=result.paid_amount,
        payment_status=result.payment_status,
        warnings=result.warnings or None,
    )


@router.post(
    "/payments/mark-overdue",
    response_model=MarkOverdueResponse,
    summary="Mark overdue installments",
)
async def mark_overdue(
    data: MarkOverdueRequest,
    service: PaymentService = Depends(get_payment_service),
) -> MarkOverdueResponse:
    try:
        updated = await service.mark_overdue(data.as_of)
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return MarkOverdueResponse(updated=updated)
