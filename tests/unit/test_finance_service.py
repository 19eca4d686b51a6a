# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for batch finance service."""

from datetime import date
from decimal import Decimal

import pytest

from src.domains.enrollment.schedule import InitialPayment
from src.domains.finance.service import normalize_amount
from src.domains.ledger.errors import (
    BatchHasEnrollmentsError,
    BatchNotFoundError,
    ExpenseNotFoundError,
    LedgerValidationError,
)

SPENT_ON = date(2025, 3, 10)


@pytest.fixture
def batch_id(ledger_store):
    instructor_id = ledger_store.add_instructor("profit_share", "30")
    course_id = ledger_store.add_course(fee=1_000_000, title="Data Science")
    return ledger_store.add_batch(course_id, instructor_id=instructor_id, batch_name="DS-01")


class TestNormalizeAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [(1500, 1500), (1500.5, 1501), (Decimal("99.4"), 99), ("250", 250)],
    )
    def test_rounds_to_whole_units(self, raw, expected):
        assert normalize_amount(raw) == expected

    @pytest.mark.parametrize("raw", [0, -10, Decimal("0.4")])
    def test_rejects_non_positive(self, raw):
        with pytest.raises(LedgerValidationError):
            normalize_amount(raw)

    def test_rejects_garbage(self):
        with pytest.raises(LedgerValidationError):
            normalize_amount("abc")


class TestFinanceServiceExpenses:
    """Tests for expense bookkeeping."""

    @pytest.mark.asyncio
    async def test_add_expense_recalculates_salary(self, finance_service, enrollment_service, ledger_store, batch_id):
        await enrollment_service.enroll(batch_id, ledger_store.add_student(), "full")
        assert ledger_store.batches[batch_id]["instructor_salary"] == 300_000

        result = await finance_service.add_expense(
            batch_id, "Venue", Decimal("200000"), SPENT_ON, notes="March", created_by="admin-1"
        )

        assert result.expense.amount == 200_000
        assert result.expense.created_by == "admin-1"
        assert result.warnings == []
        assert ledger_store.batches[batch_id]["instructor_salary"] == 240_000

    @pytest.mark.asyncio
    async def test_add_expense_batch_not_found(self, finance_service):
        with pytest.raises(BatchNotFoundError):
            await finance_service.add_expense("missing", "Venue", 100, SPENT_ON)

    @pytest.mark.asyncio
    async def test_add_expense_requires_title(self, finance_service, batch_id):
        with pytest.raises(LedgerValidationError, match="Title"):
            await finance_service.add_expense(batch_id, "   ", 100, SPENT_ON)

    @pytest.mark.asyncio
    async def test_update_expense(self, finance_service, ledger_store, batch_id):
        added = await finance_service.add_expense(batch_id, "Venue", 100_000, SPENT_ON)

        result = await finance_service.update_expense(
            added.expense.id, "Venue (revised)", 50_000.4, SPENT_ON
        )

        assert result.expense.title == "Venue (revised)"
        assert result.expense.amount == 50_000
        # No income yet: 30% of -50,000
        assert ledger_store.batches[batch_id]["instructor_salary"] == -15_000

    @pytest.mark.asyncio
    async def test_update_missing_expense(self, finance_service):
        with pytest.raises(ExpenseNotFoundError):
            await finance_service.update_expense("missing", "Venue", 100, SPENT_ON)

    @pytest.mark.asyncio
    async def test_delete_expense(self, finance_service, ledger_store, batch_id):
        added = await finance_service.add_expense(batch_id, "Venue", 100_000, SPENT_ON)

        result = await finance_service.delete_expense(added.expense.id)

        assert result.expense is None
        assert ledger_store.expenses == {}
        assert ledger_store.batches[batch_id]["instructor_salary"] == 0

    @pytest.mark.asyncio
    async def test_delete_missing_expense(self, finance_service):
        with pytest.raises(ExpenseNotFoundError):
            await finance_service.delete_expense("missing")


class TestFinanceServiceSummary:
    """Tests for the finance overview."""

    @pytest.mark.asyncio
    async def test_income_counts_paid_installments_only(
        self, finance_service, enrollment_service, payment_service, ledger_store, batch_id
    ):
        result = await enrollment_service.enroll(batch_id, ledger_store.add_student(), "installment_2")
        first = ledger_store.installments_for(result.payment_id)[0]
        await payment_service.record_payment(first.id, result.payment_id, SPENT_ON, "cash")
        await finance_service.add_expense(batch_id, "Venue", 100_000, SPENT_ON)

        [summary] = await finance_service.summarize(batch_id)

        assert summary.batch_name == "DS-01"
        assert summary.course_title == "Data Science"
        assert summary.income == 500_000
        assert summary.expenses == 100_000
        assert summary.expense_count == 1
        # Salary uses payment totals: 30% of (1,000,000 - 100,000)
        assert summary.instructor_salary == 270_000
        assert summary.net == 500_000 - 100_000 - 270_000

    @pytest.mark.asyncio
    async def test_sorted_by_income(self, finance_service, enrollment_service, ledger_store, batch_id):
        quiet = ledger_store.add_batch(ledger_store.add_course(fee=10), batch_name="Quiet")
        paid = InitialPayment(paid_date=SPENT_ON)
        await enrollment_service.enroll(batch_id, ledger_store.add_student(), "full", paid)

        summaries = await finance_service.summarize()

        assert [s.batch_id for s in summaries] == [batch_id, quiet]


class TestFinanceServiceDeleteBatch:
    """Tests for batch deletion."""

    @pytest.mark.asyncio
    async def test_refuses_while_students_enrolled(self, finance_service, enrollment_service, ledger_store, batch_id):
        await enrollment_service.enroll(batch_id, ledger_store.add_student(), "full")

        with pytest.raises(BatchHasEnrollmentsError, match="1 enrolled student"):
            await finance_service.delete_batch(batch_id)

        assert batch_id in ledger_store.batches

    @pytest.mark.asyncio
    async def test_deletes_batch_and_expenses(self, finance_service, ledger_store, batch_id):
        await finance_service.add_expense(batch_id, "Venue", 100, SPENT_ON)

        await finance_service.delete_batch(batch_id)

        assert batch_id not in ledger_store.batches
        assert ledger_store.expenses == {}

    @pytest.mark.asyncio
    async def test_batch_not_found(self, finance_service):
        with pytest.raises(BatchNotFoundError):
            await finance_service.delete_batch("missing")
