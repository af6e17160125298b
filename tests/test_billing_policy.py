from datetime import date

import pytest

from app.domain.allocation import OutstandingCharge, plan_allocation
from app.domain.billing import (
    Cadence,
    ChargeStatus,
    derive_charge_status,
    due_date_for_period,
    due_dates_until,
    format_pence,
    parse_cadence,
)
from app.domain.rental_activity import RentalActivityPolicy, RentalStatus
from app.errors import InvalidCadenceError


# ============================================================================
# PERIODS
# ============================================================================


@pytest.mark.parametrize(
    "cadence, index, expected",
    [
        (Cadence.DAILY, 3, date(2024, 2, 1)),
        (Cadence.WEEKLY, 2, date(2024, 2, 12)),
        (Cadence.MONTHLY, 1, date(2024, 2, 29)),
        (Cadence.MONTHLY, 2, date(2024, 3, 29)),
    ],
)
def test_due_date_for_period(cadence, index, expected):
    start = date(2024, 1, 29)
    assert due_date_for_period(start, cadence, index) == expected


def test_due_dates_until_respects_after_and_end_date():
    dates = due_dates_until(
        date(2024, 1, 1),
        Cadence.WEEKLY,
        until=date(2024, 3, 1),
        end_date=date(2024, 1, 29),
        after=date(2024, 1, 8),
    )
    assert dates == [date(2024, 1, 15), date(2024, 1, 22), date(2024, 1, 29)]


def test_due_dates_until_before_start_is_empty():
    assert due_dates_until(date(2024, 5, 1), Cadence.DAILY, until=date(2024, 4, 30)) == []


def test_parse_cadence():
    assert parse_cadence("Monthly") is Cadence.MONTHLY
    with pytest.raises(InvalidCadenceError, match="Daily, Weekly, Monthly"):
        parse_cadence("monthly")


# ============================================================================
# CHARGE STATUS
# ============================================================================


@pytest.mark.parametrize(
    "outstanding, due, expected",
    [
        (0, date(2024, 1, 1), ChargeStatus.PAID),
        (100, date(2024, 1, 1), ChargeStatus.OVERDUE),
        (40, date(2024, 1, 10), ChargeStatus.PARTIALLY_PAID),
        (100, date(2024, 1, 10), ChargeStatus.OPEN),
        (100, date(2024, 1, 5), ChargeStatus.OPEN),
    ],
)
def test_derive_charge_status(outstanding, due, expected):
    status = derive_charge_status(
        amount=100, amount_outstanding=outstanding, due_date=due, as_of=date(2024, 1, 5)
    )
    assert status is expected


def test_format_pence():
    assert format_pence(0) == "£0.00"
    assert format_pence(12050) == "£120.50"
    assert format_pence(123456789) == "£1,234,567.89"
    assert format_pence(-5) == "-£0.05"


# ============================================================================
# ALLOCATION PLAN
# ============================================================================


def test_plan_allocation_oldest_first():
    charges = [
        OutstandingCharge(charge_id=3, due_date=date(2024, 1, 3), amount_outstanding=20),
        OutstandingCharge(charge_id=1, due_date=date(2024, 1, 1), amount_outstanding=30),
        OutstandingCharge(charge_id=2, due_date=date(2024, 1, 2), amount_outstanding=50),
    ]

    plan = plan_allocation(60, charges)

    assert [(s.charge_id, s.amount, s.remaining_outstanding) for s in plan.steps] == [
        (1, 30, 0),
        (2, 30, 20),
    ]
    assert plan.allocated == 60
    assert plan.unallocated == 0


def test_plan_allocation_surplus():
    plan = plan_allocation(
        100, [OutstandingCharge(charge_id=1, due_date=date(2024, 1, 1), amount_outstanding=30)]
    )
    assert plan.allocated == 30
    assert plan.unallocated == 70


def test_plan_allocation_skips_settled_charges():
    plan = plan_allocation(
        10,
        [
            OutstandingCharge(charge_id=1, due_date=date(2024, 1, 1), amount_outstanding=0),
            OutstandingCharge(charge_id=2, due_date=date(2024, 1, 2), amount_outstanding=15),
        ],
    )
    assert [(s.charge_id, s.amount) for s in plan.steps] == [(2, 10)]


@pytest.mark.parametrize("amount", [0, -1])
def test_plan_allocation_rejects_non_positive(amount):
    with pytest.raises(ValueError):
        plan_allocation(amount, [])


# ============================================================================
# RENTAL ACTIVITY
# ============================================================================


def test_rental_activity_policy():
    policy = RentalActivityPolicy(as_of=date(2024, 1, 10))

    assert policy.status_for(start_date=date(2024, 1, 11)) is RentalStatus.UPCOMING
    assert policy.status_for(start_date=date(2024, 1, 10)) is RentalStatus.ACTIVE
    assert policy.is_upcoming(start_date=date(2024, 1, 9)) is False
