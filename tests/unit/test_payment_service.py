# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Payment service."""

from dataclasses import replace
from datetime import date
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from src.domains.ledger.errors import (
    CompensationFailedError,
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    LedgerIntegrityError,
    LedgerValidationError,
    PaymentNotFoundError,
    StoreError,
)

PAID_ON = date(2025, 3, 5)


@pytest.fixture
def instructor_id(ledger_store):
    return ledger_store.add_instructor("profit_share", "30")


@pytest.fixture
def batch_id(ledger_store, instructor_id):
    course_id = ledger_store.add_course(fee=100001)
    return ledger_store.add_batch(course_id, instructor_id=instructor_id)


@pytest_asyncio.fixture
async def enrollment(enrollment_service, ledger_store, batch_id):
    """Enroll a student on the two-installment plan."""
    return await enrollment_service.enroll(batch_id, ledger_store.add_student(), "installment_2")


def _installments(ledger_store, payment_id):
    return ledger_store.installments_for(payment_id)


class TestPaymentServiceRecord:
    """Tests for recording installment payments."""

    @pytest.mark.asyncio
    async def test_record_first_installment(self, payment_service, ledger_store, enrollment):
        first, _ = _installments(ledger_store, enrollment.payment_id)

        result = await payment_service.record_payment(
            first.id, enrollment.payment_id, PAID_ON, "cash", "paid at desk"
        )

        assert result.paid_amount == 50001
        assert result.payment_status == "partial"
        assert result.warnings == []

        stored = ledger_store.installments[first.id]
        assert stored.status == "paid"
        assert stored.paid_date == PAID_ON
        assert stored.payment_method == "cash"
        assert stored.notes == "paid at desk"

    @pytest.mark.asyncio
    async def test_paying_all_installments_marks_payment_paid(self, payment_service, ledger_store, enrollment):
        first, second = _installments(ledger_store, enrollment.payment_id)

        await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")
        result = await payment_service.record_payment(second.id, enrollment.payment_id, PAID_ON, "cash")

        assert result.paid_amount == 100001
        assert result.payment_status == "paid"
        assert ledger_store.payments[enrollment.payment_id].status == "paid"

    @pytest.mark.asyncio
    async def test_installment_not_found(self, payment_service, enrollment):
        with pytest.raises(InstallmentNotFoundError):
            await payment_service.record_payment("missing", enrollment.payment_id, PAID_ON, "cash")

    @pytest.mark.asyncio
    async def test_already_paid_changes_nothing(self, payment_service, ledger_store, enrollment):
        """Test paying an installment twice fails without touching the ledger."""
        first, _ = _installments(ledger_store, enrollment.payment_id)
        await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")
        writes_before = list(ledger_store.writes)
        payment_before = ledger_store.payments[enrollment.payment_id]

        with pytest.raises(InstallmentAlreadyPaidError):
            await payment_service.record_payment(first.id, enrollment.payment_id, date(2025, 4, 1), "card")

        assert ledger_store.writes == writes_before
        assert ledger_store.payments[enrollment.payment_id] == payment_before
        assert ledger_store.installments[first.id].paid_date == PAID_ON

    @pytest.mark.asyncio
    async def test_installment_of_another_payment(self, payment_service, enrollment_service, ledger_store, batch_id, enrollment):
        other = await enrollment_service.enroll(batch_id, ledger_store.add_student(), "installment_2")
        first, _ = _installments(ledger_store, enrollment.payment_id)

        with pytest.raises(LedgerValidationError):
            await payment_service.record_payment(first.id, other.payment_id, PAID_ON, "cash")

    @pytest.mark.asyncio
    async def test_payment_not_found(self, payment_service, ledger_store, enrollment):
        first, _ = _installments(ledger_store, enrollment.payment_id)
        del ledger_store.payments[enrollment.payment_id]

        with pytest.raises(PaymentNotFoundError):
            await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")

    @pytest.mark.asyncio
    async def test_overpayment_is_refused_before_writing(self, payment_service, ledger_store, enrollment):
        """Test a payment whose paid amount would exceed the total is refused."""
        first, _ = _installments(ledger_store, enrollment.payment_id)
        ledger_store.payments[enrollment.payment_id] = replace(
            ledger_store.payments[enrollment.payment_id], paid_amount=60000
        )
        writes_before = list(ledger_store.writes)

        with pytest.raises(LedgerIntegrityError):
            await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")

        assert ledger_store.writes == writes_before
        assert ledger_store.installments[first.id].status == "pending"

    @pytest.mark.asyncio
    async def test_overdue_installment_can_be_paid(self, payment_service, ledger_store, enrollment):
        _, second = _installments(ledger_store, enrollment.payment_id)
        ledger_store.installments[second.id] = replace(second, status="overdue")

        result = await payment_service.record_payment(second.id, enrollment.payment_id, PAID_ON, "cash")

        assert result.paid_amount == 50000
        assert ledger_store.installments[second.id].status == "paid"

    @pytest.mark.asyncio
    async def test_payment_update_failure_reverts_installment(self, payment_service, ledger_store, enrollment):
        """Test the installment returns to its prior status when the payment update fails."""
        _, second = _installments(ledger_store, enrollment.payment_id)
        ledger_store.installments[second.id] = replace(second, status="overdue")
        ledger_store.fail_on.add("update_payment_progress")

        with pytest.raises(StoreError):
            await payment_service.record_payment(second.id, enrollment.payment_id, PAID_ON, "cash")

        reverted = ledger_store.installments[second.id]
        assert reverted.status == "overdue"
        assert reverted.paid_date is None
        assert reverted.payment_method is None
        assert ledger_store.payments[enrollment.payment_id].paid_amount == 0

    @pytest.mark.asyncio
    async def test_failed_revert_requires_reconciliation(self, payment_service, ledger_store, enrollment):
        """Test a failed installment revert reports the installment left paid."""
        first, _ = _installments(ledger_store, enrollment.payment_id)
        ledger_store.fail_on.update({"update_payment_progress", "reset_installment"})

        with pytest.raises(CompensationFailedError) as exc_info:
            await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")

        assert exc_info.value.dangling == {"payment_installments": first.id}
        assert isinstance(exc_info.value.__cause__, StoreError)
        assert str(exc_info.value.__cause__) == "Failed to update payment progress"
        assert ledger_store.installments[first.id].status == "paid"
        assert ledger_store.payments[enrollment.payment_id].paid_amount == 0

    @pytest.mark.asyncio
    async def test_payment_triggers_salary_recalculation(self, payment_service, ledger_store, batch_id, enrollment):
        first, _ = _installments(ledger_store, enrollment.payment_id)
        ledger_store.batches[batch_id]["instructor_salary"] = 0

        await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")

        assert ledger_store.writes[-1] == "set_instructor_salary"
        assert ledger_store.batches[batch_id]["instructor_salary"] == 30000

    @pytest.mark.asyncio
    async def test_salary_failure_is_a_warning(self, payment_service, ledger_store, enrollment):
        first, _ = _installments(ledger_store, enrollment.payment_id)
        ledger_store.fail_on.add("set_instructor_salary")

        result = await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")

        assert result.payment_status == "partial"
        assert len(result.warnings) == 1

    @pytest.mark.asyncio
    async def test_enrollment_lookup_failure_is_a_warning(self, payment_service, ledger_store, enrollment, monkeypatch):
        """Test a committed payment is reported even when its batch cannot be looked up."""
        first, _ = _installments(ledger_store, enrollment.payment_id)
        monkeypatch.setattr(
            ledger_store,
            "get_enrollment",
            AsyncMock(side_effect=StoreError("Failed to load enrollment")),
        )

        result = await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")

        assert result.paid_amount == 50001
        assert result.payment_status == "partial"
        assert result.warnings == ["Instructor salary recalculation failed: Failed to load enrollment"]
        assert ledger_store.installments[first.id].status == "paid"


class TestPaymentServiceOverdue:
    """Tests for the overdue sweep."""

    @pytest.mark.asyncio
    async def test_marks_only_pending_past_due(self, payment_service, ledger_store, enrollment):
        first, second = _installments(ledger_store, enrollment.payment_id)
        await payment_service.record_payment(first.id, enrollment.payment_id, PAID_ON, "cash")

        # second is due 2025-03-29
        assert await payment_service.mark_overdue(date(2025, 3, 29)) == 0

        updated = await payment_service.mark_overdue(date(2025, 3, 30))

        assert updated == 1
        assert ledger_store.installments[second.id].status == "overdue"
        assert ledger_store.installments[first.id].status == "paid"

    @pytest.mark.asyncio
    async def test_sweep_is_idempotent(self, payment_service, ledger_store, enrollment):
        await payment_service.mark_overdue(date(2030, 1, 1))

        assert await payment_service.mark_overdue(date(2030, 1, 1)) == 0
