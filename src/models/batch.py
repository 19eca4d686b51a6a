# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch finance and salary API models."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class RecalculateSalaryRequest(BaseModel):
    """Request to recalculate a batch's instructor salary.

    Accepts ``batchId`` as sent by the admin UI, or ``batch_id``.
    """

    model_config = ConfigDict(populate_by_name=True)

    batch_id: str = Field(alias="batchId", min_length=1)


class RecalculateSalaryResponse(BaseModel):
    success: bool = True
    updated: bool
    salary: int | None = None


class DeleteBatchResponse(BaseModel):
    success: bool = True
    message: str


class BatchFinanceResponse(BaseModel):
    """Income and costs of one batch."""

    model_config = ConfigDict(from_attributes=True)

    batch_id: str
    batch_name: str
    course_title: str
    income: int
    expenses: int
    expense_count: int
    instructor_salary: int
    net: int


class ExpenseRequest(BaseModel):
    """Create or update a batch expense.

    Amounts are rounded to whole currency units and must be positive.
    """

    title: str = Field(min_length=1, max_length=200)
    amount: Decimal = Field(gt=0)
    expense_date: date
    notes: str | None = None


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    batch_id: str
    title: str
    amount: int
    expense_date: date
    notes: str | None = None
    created_by: str | None = None


class ExpenseWriteResponse(BaseModel):
    """Response after an expense write."""

    success: bool = True
    expense: ExpenseResponse | None = None
    warnings: list[str] | None = None
