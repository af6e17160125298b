"""Billing periods and charge status rules.

Due dates are always computed from the rental's start date and the period
index, never chained from the previous due date. For monthly cadence this
means a rental starting on the 31st is billed on the last day of shorter
months and returns to the 31st whenever the month allows it.
"""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from app.errors import InvalidCadenceError


class Cadence(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class ChargeStatus(str, Enum):
    OPEN = "Open"
    PARTIALLY_PAID = "PartiallyPaid"
    PAID = "Paid"
    OVERDUE = "Overdue"


# Statuses of charges that can still receive allocations.
OUTSTANDING_STATUSES = (
    ChargeStatus.OPEN.value,
    ChargeStatus.PARTIALLY_PAID.value,
    ChargeStatus.OVERDUE.value,
)


def parse_cadence(value: str | Cadence) -> Cadence:
    """Return the Cadence for a stored value, raising InvalidCadenceError otherwise."""
    if isinstance(value, Cadence):
        return value
    try:
        return Cadence(value)
    except ValueError:
        raise InvalidCadenceError(
            f"Unsupported billing cadence '{value}'. Expected one of: "
            + ", ".join(c.value for c in Cadence)
        ) from None


def due_date_for_period(start_date: date, cadence: Cadence, index: int) -> date:
    """Due date of the index-th billing period (index 0 is the start date)."""
    if index < 0:
        raise ValueError("Period index must be >= 0")
    if cadence is Cadence.DAILY:
        return start_date + timedelta(days=index)
    if cadence is Cadence.WEEKLY:
        return start_date + timedelta(days=7 * index)
    # relativedelta clamps to the last day of shorter months
    return start_date + relativedelta(months=index)


def due_dates_until(
    start_date: date,
    cadence: Cadence,
    *,
    until: date,
    end_date: date | None = None,
    after: date | None = None,
) -> list[date]:
    """All period due dates d with after < d <= until and d <= end_date."""
    limit = until if end_date is None else min(until, end_date)
    dates = []
    index = 0
    while True:
        due = due_date_for_period(start_date, cadence, index)
        if due > limit:
            break
        if after is None or due > after:
            dates.append(due)
        index += 1
    return dates


def status_after_allocation(amount_outstanding: int) -> ChargeStatus:
    if amount_outstanding == 0:
        return ChargeStatus.PAID
    return ChargeStatus.PARTIALLY_PAID


def derive_charge_status(
    *, amount: int, amount_outstanding: int, due_date: date, as_of: date
) -> ChargeStatus:
    """Status of a charge re-derived from its balances, e.g. after a payment reversal."""
    if amount_outstanding == 0:
        return ChargeStatus.PAID
    if due_date < as_of:
        return ChargeStatus.OVERDUE
    if amount_outstanding < amount:
        return ChargeStatus.PARTIALLY_PAID
    return ChargeStatus.OPEN


class PaymentType(str, Enum):
    INITIAL_FEE = "InitialFee"
    RENTAL = "Rental"
    OTHER = "Other"


# Method recorded on payments the system creates itself (initial fee).
SYSTEM_PAYMENT_METHOD = "System"


def format_pence(amount: int) -> str:
    """Render an amount in minor units as pounds, e.g. 12050 -> '£120.50'."""
    sign = "-" if amount < 0 else ""
    pounds, pence = divmod(abs(amount), 100)
    return f"{sign}£{pounds:,}.{pence:02d}"
