# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch finance API endpoints.

This module provides endpoints for batch money matters:
- POST /batches/recalculate-salary - Recompute the instructor salary
- GET /batches/finance - Income, expenses and net per batch
- DELETE /batches/{batch_id} - Delete a batch without enrollments

Expense endpoints:
- POST /batches/{batch_id}/expenses - Add an expense
- PUT /expenses/{expense_id} - Update an expense
- DELETE /expenses/{expense_id} - Delete an expense

Every expense change triggers a salary recalculation for its batch.
"""

import logging

from fastapi import APIRouter, Depends, Query

from src.api.admin.errors import ledger_http_exception
from src.api.dependencies import get_finance_service, get_salary_service
from src.domains.finance.service import ExpenseResult, FinanceService
from src.domains.ledger.errors import LedgerError
from src.domains.salary.service import SalaryService
from src.models.batch import (
    BatchFinanceResponse,
    DeleteBatchResponse,
    ExpenseRequest,
    ExpenseResponse,
    ExpenseWriteResponse,
    RecalculateSalaryRequest,
    RecalculateSalaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _expense_response(result: ExpenseResult) -> ExpenseWriteResponse:
    return ExpenseWriteResponse(
        expense=ExpenseResponse.model_validate(result.expense) if result.expense else None,
        warnings=result.warnings or None,
    )


@router.post(
    "/batches/recalculate-salary",
    response_model=RecalculateSalaryResponse,
    response_model_exclude_none=True,
    summary="Recalculate instructor salary",
)
async def recalculate_salary(
    data: RecalculateSalaryRequest,
    service: SalaryService = Depends(get_salary_service),
) -> RecalculateSalaryResponse:
    """Recalculate the profit-share salary of a batch's instructor.

    Fixed-salary instructors and batches without an instructor are left
    unchanged and reported with ``updated`` false.

    Raises:
        HTTPException: If batch not found.
    """
    try:
        result = await service.recalculate(data.batch_id)
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return RecalculateSalaryResponse(updated=result.updated, salary=result.salary)


@router.get(
    "/batches/finance",
    response_model=list[BatchFinanceResponse],
    summary="Batch finance overview",
)
async def batch_finance(
    batch_id: str | None = Query(default=None, description="Restrict to one batch"),
    service: FinanceService = Depends(get_finance_service),
) -> list[BatchFinanceResponse]:
    try:
        summaries = await service.summarize(batch_id)
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return [BatchFinanceResponse.model_validate(s) for s in summaries]


@router.delete(
    "/batches/{batch_id}",
    response_model=DeleteBatchResponse,
    summary="Delete batch",
)
async def delete_batch(
    batch_id: str,
    service: FinanceService = Depends(get_finance_service),
) -> DeleteBatchResponse:
    """Delete a batch and its expenses.

    Raises:
        HTTPException: If batch not found or students are still enrolled.
    """
    try:
        await service.delete_batch(batch_id)
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return DeleteBatchResponse(message="Batch deleted successfully")


@router.post(
    "/batches/{batch_id}/expenses",
    response_model=ExpenseWriteResponse,
    response_model_exclude_none=True,
    summary="Add batch expense",
)
async def add_expense(
    batch_id: str,
    data: ExpenseRequest,
    service: FinanceService = Depends(get_finance_service),
) -> ExpenseWriteResponse:
    try:
        result = await service.add_expense(
            batch_id=batch_id,
            title=data.title,
            amount=data.amount,
            expense_date=data.expense_date,
            notes=data.notes,
        )
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return _expense_response(result)


@router.put(
    "/expenses/{expense_id}",
    response_model=ExpenseWriteResponse,
    response_model_exclude_none=True,
    summary="Update batch expense",
)
async def update_expense(
    expense_id: str,
    data: ExpenseRequest,
    service: FinanceService = Depends(get_finance_service),
) -> ExpenseWriteResponse:
    try:
        result = await service.update_expense(
            expense_id=expense_id,
            title=data.title,
            amount=data.amount,
            expense_date=data.expense_date,
            notes=data.notes,
        )
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return _expense_response(result)


@router.delete(
    "/expenses/{expense_id}",
    response_model=ExpenseWriteResponse,
    response_model_exclude_none=True,
    summary="Delete batch expense",
)
async def delete_expense(
    expense_id: str,
    service: FinanceService = Depends(get_finance_service),
) -> ExpenseWriteResponse:
    try:
        result = await service.delete_expense(expense_id)
    except LedgerError as e:
        raise ledger_http_exception(e) from e

    return _expense_response(result)
