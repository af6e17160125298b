"""Ledger Aggregator: read-only balance figures for rentals and customers."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

import app.repositories.customer as customer_repo
import app.repositories.ledger as ledger_repo
import app.repositories.rental as rental_repo
from app.errors import LedgerIntegrityError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerTotals:
    total_charges: int
    total_payments: int
    outstanding: int


@dataclass(frozen=True)
class CustomerNetPosition(LedgerTotals):
    unallocated_credit: int = 0


def _checked_outstanding(figures: dict[str, int], scope: str) -> int:
    """
    Cross-check the derived balance against the maintained one.

    total_charges - total_payments is re-derived from allocations, while the
    sum of amount_outstanding is maintained incrementally by the allocator.
    """
    derived = figures["total_charges"] - figures["total_payments"]
    maintained = figures["outstanding"]
    if derived != maintained:
        logger.error(
            "Ledger drift for %s: charges %s - payments %s = %s, but outstanding sums to %s",
            scope,
            figures["total_charges"],
            figures["total_payments"],
            derived,
            maintained,
        )
        raise LedgerIntegrityError(
            f"Ledger drift for {scope}: derived outstanding {derived} "
            f"does not match maintained outstanding {maintained}"
        )
    return derived


def get_rental_totals(db: Session, rental_id: int) -> LedgerTotals:
    """
    Summary figures for one rental.

    Raises:
        NotFoundError: If the rental doesn't exist
        LedgerIntegrityError: If the two ways of computing outstanding disagree
    """
    if not rental_repo.get_rental_by_id(db, rental_id):
        raise NotFoundError(f"Rental with id {rental_id} not found")

    figures = ledger_repo.get_rental_figures(db, rental_id)
    outstanding = _checked_outstanding(figures, f"rental {rental_id}")
    return LedgerTotals(
        total_charges=figures["total_charges"],
        total_payments=figures["total_payments"],
        outstanding=outstanding,
    )


def get_customer_net_position(db: Session, customer_id: int) -> CustomerNetPosition:
    """
    Summary figures summed across every rental of a customer.

    unallocated_credit is processed payment money that was not allocated to
    any charge (overpayment). It is reported, never netted into outstanding.

    Raises:
        NotFoundError: If the customer doesn't exist
        LedgerIntegrityError: If the two ways of computing outstanding disagree
    """
    if not customer_repo.get_customer_by_id(db, customer_id):
        raise NotFoundError(f"Customer with id {customer_id} not found")

    figures = ledger_repo.get_customer_figures(db, customer_id)
    outstanding = _checked_outstanding(figures, f"customer {customer_id}")
    return CustomerNetPosition(
        total_charges=figures["total_charges"],
        total_payments=figures["total_payments"],
        outstanding=outstanding,
        unallocated_credit=figures["processed_payments"]
        - figures["allocated_from_processed"],
    )
