from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class OutstandingCharge:
    charge_id: int
    due_date: date
    amount_outstanding: int


@dataclass(frozen=True, slots=True)
class AllocationStep:
    charge_id: int
    amount: int
    expected_outstanding: int
    remaining_outstanding: int


@dataclass(frozen=True, slots=True)
class AllocationPlan:
    steps: tuple[AllocationStep, ...]
    unallocated: int

    @property
    def allocated(self) -> int:
        return sum(step.amount for step in self.steps)


def plan_allocation(amount: int, charges: list[OutstandingCharge]) -> AllocationPlan:
    """Distribute a payment over outstanding charges, oldest debt first.

    Charges are ordered by due date, ties broken by charge id (creation
    order). Each charge takes as much as it still owes; the walk stops once
    the payment is exhausted. Whatever is left over is returned as
    ``unallocated``.
    """
    if amount <= 0:
        raise ValueError("Payment amount must be greater than 0")

    remaining = amount
    steps = []
    for charge in sorted(charges, key=lambda c: (c.due_date, c.charge_id)):
        if remaining == 0:
            break
        if charge.amount_outstanding <= 0:
            continue
        portion = min(remaining, charge.amount_outstanding)
        steps.append(
            AllocationStep(
                charge_id=charge.charge_id,
                amount=portion,
                expected_outstanding=charge.amount_outstanding,
                remaining_outstanding=charge.amount_outstanding - portion,
            )
        )
        remaining -= portion

    return AllocationPlan(steps=tuple(steps), unallocated=remaining)
