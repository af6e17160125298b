from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from app.db.models.allocation import Allocation as AllocationModel
from app.db.models.charge import Charge as ChargeModel
from app.db.models.payment import Payment as PaymentModel
from app.db.models.reminder import Reminder as ReminderModel
from app.db.models.rental import Rental as RentalModel
from app.domain.rental_activity import RentalActivityPolicy, RentalStatus
from app.domain.reminder_rules import ReminderObjectType


def get_rental_by_id(db: Session, rental_id: int) -> RentalModel | None:
    """Get a rental by ID with customer and vehicle loaded."""
    return (
        db.query(RentalModel)
        .options(joinedload(RentalModel.customer), joinedload(RentalModel.vehicle))
        .filter(RentalModel.id == rental_id)
        .first()
    )


def get_rental_for_update(db: Session, rental_id: int) -> RentalModel | None:
    """Get a rental by ID, locking the row for the current transaction."""
    return (
        db.query(RentalModel)
        .filter(RentalModel.id == rental_id)
        .with_for_update()
        .first()
    )


def get_rentals_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    customer_id: int | None = None,
    vehicle_id: int | None = None,
    status: str | None = None,
) -> tuple[list[RentalModel], int]:
    """
    Get rentals with pagination and optional filters, newest start date first.

    Returns:
        Tuple of (list of rentals, total count)
    """
    query = db.query(RentalModel)
    if customer_id is not None:
        query = query.filter(RentalModel.customer_id == customer_id)
    if vehicle_id is not None:
        query = query.filter(RentalModel.vehicle_id == vehicle_id)
    if status is not None:
        query = query.filter(RentalModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    rentals = (
        query.order_by(RentalModel.start_date.desc(), RentalModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return rentals, total


def get_rentals_by_customer_id(db: Session, customer_id: int) -> list[RentalModel]:
    """Get all rentals for a specific customer."""
    return db.query(RentalModel).filter(RentalModel.customer_id == customer_id).all()


def get_rentals_by_vehicle_id(db: Session, vehicle_id: int) -> list[RentalModel]:
    """Get all rentals for a specific vehicle."""
    return db.query(RentalModel).filter(RentalModel.vehicle_id == vehicle_id).all()


def get_open_rentals(db: Session) -> list[RentalModel]:
    """Get all rentals that are not closed, oldest first."""
    return (
        db.query(RentalModel)
        .filter(RentalModel.status != RentalStatus.CLOSED.value)
        .order_by(RentalModel.id)
        .all()
    )


def count_open_rentals_for_customer(db: Session, customer_id: int) -> int:
    return (
        db.query(RentalModel)
        .filter(
            RentalModel.customer_id == customer_id,
            RentalModel.status != RentalStatus.CLOSED.value,
        )
        .count()
    )


def get_open_rental_for_vehicle(db: Session, vehicle_id: int) -> RentalModel | None:
    return (
        db.query(RentalModel)
        .filter(
            RentalModel.vehicle_id == vehicle_id,
            RentalModel.status != RentalStatus.CLOSED.value,
        )
        .first()
    )


def add_rental(
    db: Session,
    customer_id: int,
    vehicle_id: int,
    start_date: date,
    end_date: date | None,
    cadence: str,
    periodic_amount: int,
    status: str,
) -> RentalModel:
    """Add a rental to the session. Flushes only; the caller owns the transaction."""
    db_rental = RentalModel(
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        start_date=start_date,
        end_date=end_date,
        cadence=cadence,
        periodic_amount=periodic_amount,
        status=status,
    )
    db.add(db_rental)
    db.flush()
    return db_rental


def activate_started_rentals(db: Session, as_of: date) -> int:
    """Move Upcoming rentals whose start date has arrived to Active. Returns the row count."""
    policy = RentalActivityPolicy(as_of=as_of)
    return (
        db.query(RentalModel)
        .filter(
            policy.sqlalchemy_started_predicate(
                status_col=RentalModel.status,
                start_col=RentalModel.start_date,
            )
        )
        .update({RentalModel.status: RentalStatus.ACTIVE.value}, synchronize_session=False)
    )


def delete_rental_and_dependents(db: Session, rental_id: int) -> None:
    """
    Delete a rental together with everything that hangs off it.

    Order: reminders on its charges, allocations against its charges or from
    its payments, its payments, its charges, the rental. Flushes only; the
    caller owns the transaction, so the whole removal commits or rolls back
    as one unit.
    """
    charge_ids = select(ChargeModel.id).where(ChargeModel.rental_id == rental_id)
    payment_ids = select(PaymentModel.id).where(PaymentModel.rental_id == rental_id)

    db.query(ReminderModel).filter(
        ReminderModel.object_type == ReminderObjectType.CHARGE.value,
        ReminderModel.object_id.in_(charge_ids),
    ).delete(synchronize_session=False)
    db.query(AllocationModel).filter(
        AllocationModel.charge_id.in_(charge_ids)
        | AllocationModel.payment_id.in_(payment_ids)
    ).delete(synchronize_session=False)
    db.query(PaymentModel).filter(PaymentModel.rental_id == rental_id).delete(
        synchronize_session=False
    )
    db.query(ChargeModel).filter(ChargeModel.rental_id == rental_id).delete(
        synchronize_session=False
    )
    db.query(RentalModel).filter(RentalModel.id == rental_id).delete(
        synchronize_session=False
    )
    db.flush()
