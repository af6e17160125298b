import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import app.repositories.allocation as allocation_repo
import app.repositories.charge as charge_repo
import app.repositories.customer as customer_repo
import app.repositories.invoice as invoice_repo
import app.repositories.payment as payment_repo
import app.repositories.reminder as reminder_repo
import app.repositories.rental as rental_repo
import app.repositories.vehicle as vehicle_repo
from app.db.models.rental import Rental as RentalModel
from app.domain.billing import SYSTEM_PAYMENT_METHOD, PaymentType, parse_cadence
from app.domain.fleet import INDIVIDUAL_MAX_OPEN_RENTALS, CustomerType, VehicleStatus
from app.domain.reminder_rules import ReminderObjectType
from app.domain.rental_activity import RentalActivityPolicy, RentalStatus
from app.errors import ConcurrentModificationError, DomainValidationError, NotFoundError
from app.services.charge import generate_initial_charge, rollover_charges
from app.services.payment import apply_payment

logger = logging.getLogger(__name__)


def create_rental(
    db: Session,
    customer_id: int,
    vehicle_id: int,
    start_date: date,
    cadence: str,
    periodic_amount: int,
    as_of: date,
    end_date: date | None = None,
    initial_fee: int | None = None,
) -> RentalModel:
    """
    Book a rental.

    - Validates amounts, dates and cadence
    - Validates customer and vehicle exist
    - An individual customer may hold only one rental that is not closed
    - The vehicle must not be on another rental that is not closed
    - Status is Upcoming or Active depending on ``as_of``
    - Generates the first period's charge and marks the vehicle Rented
    - Records the initial fee (if any) as a system payment dated on the start
      date and applies it

    The rental, its first charge and the initial-fee payment are committed
    together. If applying the fee then fails, the payment stays recorded and
    flagged unprocessed for an operator to retry.

    Raises:
        DomainValidationError: If a business rule is violated
        NotFoundError: If customer or vehicle doesn't exist
        InvalidCadenceError: If the cadence is not supported
    """
    if periodic_amount <= 0:
        raise DomainValidationError("Periodic amount must be greater than 0")
    if end_date is not None and end_date < start_date:
        raise DomainValidationError(
            f"End date ({end_date}) cannot precede start date ({start_date})"
        )
    if initial_fee is not None and initial_fee < 0:
        raise DomainValidationError("Initial fee cannot be negative")
    cadence = parse_cadence(cadence).value

    customer = customer_repo.get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError(f"Customer with id {customer_id} not found")

    vehicle = vehicle_repo.get_vehicle_by_id(db, vehicle_id)
    if not vehicle:
        raise NotFoundError(f"Vehicle with id {vehicle_id} not found")

    if (
        customer.customer_type == CustomerType.INDIVIDUAL.value
        and rental_repo.count_open_rentals_for_customer(db, customer_id)
        >= INDIVIDUAL_MAX_OPEN_RENTALS
    ):
        raise DomainValidationError(
            f"Customer {customer_id} is an individual and already has an open rental"
        )

    if rental_repo.get_open_rental_for_vehicle(db, vehicle_id):
        raise DomainValidationError(f"Vehicle {vehicle.reg} is already on an open rental")

    status = RentalActivityPolicy(as_of=as_of).status_for(start_date=start_date)

    try:
        rental = rental_repo.add_rental(
            db,
            customer_id=customer_id,
            vehicle_id=vehicle_id,
            start_date=start_date,
            end_date=end_date,
            cadence=cadence,
            periodic_amount=periodic_amount,
            status=status.value,
        )
        generate_initial_charge(db, rental)
        vehicle_repo.set_vehicle_status(db, vehicle_id, VehicleStatus.RENTED.value)

        fee_payment = None
        if initial_fee:
            fee_payment = payment_repo.add_payment(
                db,
                customer_id=customer_id,
                rental_id=rental.id,
                vehicle_id=vehicle_id,
                amount=initial_fee,
                payment_date=start_date,
                payment_type=PaymentType.INITIAL_FEE.value,
                method=SYSTEM_PAYMENT_METHOD,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Created rental %s for customer %s on vehicle %s (%s %s from %s)",
        rental.id,
        customer_id,
        vehicle_id,
        cadence,
        periodic_amount,
        start_date,
    )

    if fee_payment is not None:
        try:
            apply_payment(db, fee_payment.id)
        except (ConcurrentModificationError, SQLAlchemyError) as exc:
            logger.warning(
                "Initial fee payment %s for rental %s left unprocessed: %s",
                fee_payment.id,
                rental.id,
                exc,
            )

    return rental_repo.get_rental_by_id(db, rental.id)


def get_rental(db: Session, rental_id: int) -> RentalModel:
    rental = rental_repo.get_rental_by_id(db, rental_id)
    if not rental:
        raise NotFoundError(f"Rental with id {rental_id} not found")
    return rental


def get_all_rentals(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    customer_id: int | None = None,
    vehicle_id: int | None = None,
    status: str | None = None,
) -> tuple[list[RentalModel], int]:
    return rental_repo.get_rentals_paginated(
        db,
        page=page,
        page_size=page_size,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        status=status,
    )


def refresh_rental_statuses(db: Session, as_of: date) -> int:
    """Move Upcoming rentals whose start date has arrived to Active."""
    count = rental_repo.activate_started_rentals(db, as_of)
    db.commit()
    if count:
        logger.info("Activated %d rental(s) as of %s", count, as_of)
    return count


def close_rental(db: Session, rental_id: int, as_of: date) -> RentalModel:
    """
    Close a rental as of a date.

    Charges are rolled over up to the close date first, so every period that
    started before closing is billed. The end date is pulled back to the close
    date (never before the start date) and the vehicle becomes Available.

    A back-dated close removes the charges already generated for periods after
    the new end date, together with their reminders. If money was allocated to
    any of them the close is refused; reverse those payments first.

    Raises:
        NotFoundError: If the rental doesn't exist
        DomainValidationError: If the rental is already closed, or a charge
            after the close date has allocations
    """
    rental = rental_repo.get_rental_for_update(db, rental_id)
    if not rental:
        raise NotFoundError(f"Rental with id {rental_id} not found")
    if rental.status == RentalStatus.CLOSED.value:
        raise DomainValidationError(f"Rental {rental_id} is already closed")

    end_date = rental.end_date
    if end_date is None or end_date > as_of:
        end_date = max(as_of, rental.start_date)

    later_charges = []
    latest_due = charge_repo.get_latest_due_date(db, rental_id)
    if latest_due is not None and latest_due > end_date:
        later_charges = [
            charge
            for charge in charge_repo.get_charges_by_rental_id(db, rental_id)
            if charge.due_date > end_date
        ]
        for charge in later_charges:
            if allocation_repo.get_allocations_by_charge_id(db, charge.id):
                db.rollback()
                raise DomainValidationError(
                    f"Cannot close rental {rental_id} as of {as_of}: the charge due "
                    f"{charge.due_date} already has payments allocated"
                )

    try:
        if later_charges:
            later_ids = [charge.id for charge in later_charges]
            reminder_repo.delete_reminders_for_objects(
                db, ReminderObjectType.CHARGE.value, later_ids
            )
            charge_repo.delete_charges(db, later_ids)
            logger.info(
                "Removed %d charge(s) due after %s from rental %s",
                len(later_ids),
                end_date,
                rental_id,
            )
        rental.end_date = end_date
        rollover_charges(db, rental, as_of)
        rental.status = RentalStatus.CLOSED.value
        rental.closed_at = as_of
        vehicle_repo.set_vehicle_status(db, rental.vehicle_id, VehicleStatus.AVAILABLE.value)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Closed rental %s as of %s", rental_id, as_of)
    return rental_repo.get_rental_by_id(db, rental_id)


def delete_rental(db: Session, rental_id: int) -> None:
    """
    Delete a rental with its charges, their allocations and reminders, and the
    payments recorded against it, in one transaction. Frees the vehicle.

    Payments recorded at customer level that were allocated to this rental's
    charges are kept; their money becomes unallocated credit.
    Invoices raised for the rental are kept with their snapshot details and
    lose the link to it.

    Raises:
        NotFoundError: If the rental doesn't exist
    """
    rental = rental_repo.get_rental_by_id(db, rental_id)
    if not rental:
        raise NotFoundError(f"Rental with id {rental_id} not found")

    vehicle_id = rental.vehicle_id
    was_open = rental.status != RentalStatus.CLOSED.value

    try:
        invoice_repo.detach_rental_invoices(db, rental_id)
        rental_repo.delete_rental_and_dependents(db, rental_id)
        if was_open:
            vehicle_repo.set_vehicle_status(db, vehicle_id, VehicleStatus.AVAILABLE.value)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Deleted rental %s and its dependents", rental_id)
