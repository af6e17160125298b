"""Charge Generator: turns a rental's billing schedule into charge rows.

Charges are produced explicitly, once at rental creation and then by rollover
calls, never as a side effect of inserting a rental.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

import app.repositories.charge as charge_repo
import app.repositories.rental as rental_repo
from app.db.models.charge import Charge as ChargeModel
from app.db.models.rental import Rental as RentalModel
from app.domain.billing import derive_charge_status, due_dates_until, parse_cadence
from app.errors import NotFoundError

logger = logging.getLogger(__name__)


def generate_initial_charge(db: Session, rental: RentalModel) -> ChargeModel:
    """
    Create the charge for the first billing period of a rental.

    The charge is due on the rental's start date for the full periodic amount.
    Calling it again returns the charge that already exists for that date.
    Flushes only; the caller owns the transaction.

    Raises:
        InvalidCadenceError: If the rental's cadence is not supported
    """
    parse_cadence(rental.cadence)

    charge = charge_repo.add_charge(
        db,
        rental_id=rental.id,
        due_date=rental.start_date,
        amount=rental.periodic_amount,
    )
    if charge is None:
        return next(
            c
            for c in charge_repo.get_charges_by_rental_id(db, rental.id)
            if c.due_date == rental.start_date
        )

    logger.info(
        "Generated initial charge %s for rental %s due %s (%s)",
        charge.id,
        rental.id,
        charge.due_date,
        charge.amount,
    )
    return charge


def rollover_charges(db: Session, rental: RentalModel, as_of: date) -> list[ChargeModel]:
    """
    Create one charge for every elapsed billing period not yet represented.

    Periods are counted from the start date with the rental's cadence and
    stop at ``as_of`` and at the rental's end date, whichever comes first.
    Open-ended rentals therefore only ever receive periods that have started.
    Re-running with the same ``as_of`` creates nothing. Flushes only.

    Returns:
        The charges created by this call, oldest first.

    Raises:
        InvalidCadenceError: If the rental's cadence is not supported
    """
    cadence = parse_cadence(rental.cadence)
    existing = charge_repo.get_due_dates_for_rental(db, rental.id)

    created = []
    for due_date in due_dates_until(
        rental.start_date, cadence, until=as_of, end_date=rental.end_date
    ):
        if due_date in existing:
            continue
        status = derive_charge_status(
            amount=rental.periodic_amount,
            amount_outstanding=rental.periodic_amount,
            due_date=due_date,
            as_of=as_of,
        )
        charge = charge_repo.add_charge(
            db,
            rental_id=rental.id,
            due_date=due_date,
            amount=rental.periodic_amount,
            status=status.value,
        )
        # None means a concurrent rollover inserted this period first
        if charge is not None:
            created.append(charge)

    if created:
        logger.info(
            "Rolled over rental %s as of %s: %d new charge(s), last due %s",
            rental.id,
            as_of,
            len(created),
            created[-1].due_date,
        )
    return created


def rollover_rental(db: Session, rental_id: int, as_of: date) -> list[ChargeModel]:
    """Roll over a single rental and commit."""
    rental = rental_repo.get_rental_by_id(db, rental_id)
    if not rental:
        raise NotFoundError(f"Rental with id {rental_id} not found")
    try:
        created = rollover_charges(db, rental, as_of)
        db.commit()
    except Exception:
        db.rollback()
        raise
    for charge in created:
        db.refresh(charge)
    return created


def rollover_all_rentals(db: Session, as_of: date) -> int:
    """
    Roll over every rental that is not closed, committing per rental.

    Returns:
        Number of charges created.
    """
    total = 0
    for rental in rental_repo.get_open_rentals(db):
        try:
            total += len(rollover_charges(db, rental, as_of))
            db.commit()
        except Exception:
            db.rollback()
            raise
    return total


def refresh_overdue_charges(db: Session, as_of: date) -> int:
    """Mark charges past their due date that still carry a balance as Overdue."""
    count = charge_repo.mark_overdue_charges(db, as_of)
    db.commit()
    if count:
        logger.info("Marked %d charge(s) overdue as of %s", count, as_of)
    return count


def get_rental_charges(db: Session, rental_id: int) -> list[ChargeModel]:
    if not rental_repo.get_rental_by_id(db, rental_id):
        raise NotFoundError(f"Rental with id {rental_id} not found")
    return charge_repo.get_charges_by_rental_id(db, rental_id)
