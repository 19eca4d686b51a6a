# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Multi-course discount policy.

A student who already holds at least one enrollment (in any batch, at any
time) gets a flat discount on every further enrollment. The discount is not
capped against the fee here; the orchestrator floors the final amount at
zero.
"""

from dataclasses import dataclass

from src.domains.ledger.store import LedgerStore


@dataclass(frozen=True)
class DiscountDecision:
    """Outcome of the discount policy for one enrollment.

    Attributes:
        is_multi_course: Whether the student already had an enrollment.
        discount_amount: Discount in whole currency units.
        notes: Human-readable note stored on the payment, if any.
    """

    is_multi_course: bool
    discount_amount: int
    notes: str | None = None


def decide_discount(prior_enrollments: int, amount: int, currency: str) -> DiscountDecision:
    """Apply the multi-course rule to an enrollment count.

    Args:
        prior_enrollments: Number of enrollments the student already has.
        amount: Flat discount granted to returning students.
        currency: Currency code for the payment note.

    Returns:
        The discount decision.

    Example:
        >>> decide_discount(1, 10000, "MMK")
        DiscountDecision(is_multi_course=True, discount_amount=10000, notes='10,000 MMK multi-course discount applied')
    """
    if prior_enrollments > 0:
        return DiscountDecision(
            is_multi_course=True,
            discount_amount=amount,
            notes=f"{amount:,} {currency} multi-course discount applied",
        )
    return DiscountDecision(is_multi_course=False, discount_amount=0)


class DiscountPolicy:
    """Looks up a student's enrollment history and decides the discount."""

    def __init__(self, store: LedgerStore, amount: int = 10000, currency: str = "MMK") -> None:
        self.store = store
        self.amount = amount
        self.currency = currency

    async def evaluate(self, student_id: str) -> DiscountDecision:
        """Decide the discount for a student's next enrollment.

        Args:
            student_id: Student identifier.

        Returns:
            The discount decision.
        """
        prior = await self.store.count_student_enrollments(student_id)
        return decide_discount(prior, self.amount, self.currency)
