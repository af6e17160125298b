from datetime import date

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.db.models.charge import Charge as ChargeModel
from app.db.models.rental import Rental as RentalModel
from app.domain.billing import OUTSTANDING_STATUSES, ChargeStatus


def get_charge_by_id(db: Session, charge_id: int) -> ChargeModel | None:
    """Get a charge by ID."""
    return db.query(ChargeModel).filter(ChargeModel.id == charge_id).first()


def get_charges_by_rental_id(db: Session, rental_id: int) -> list[ChargeModel]:
    """Get all charges for a rental in billing order."""
    return (
        db.query(ChargeModel)
        .filter(ChargeModel.rental_id == rental_id)
        .order_by(ChargeModel.due_date, ChargeModel.id)
        .all()
    )


def get_due_dates_for_rental(db: Session, rental_id: int) -> set[date]:
    rows = db.query(ChargeModel.due_date).filter(ChargeModel.rental_id == rental_id).all()
    return {row.due_date for row in rows}


def get_latest_due_date(db: Session, rental_id: int) -> date | None:
    return (
        db.query(func.max(ChargeModel.due_date))
        .filter(ChargeModel.rental_id == rental_id)
        .scalar()
    )


def add_charge(
    db: Session,
    rental_id: int,
    due_date: date,
    amount: int,
    status: str | None = None,
) -> ChargeModel | None:
    """
    Insert a charge inside a savepoint.

    Returns None when (rental_id, due_date) already exists, which happens when
    a concurrent rollover got there first. Flushes only; the caller owns the
    transaction.
    """
    if status is None:
        status = (ChargeStatus.PAID if amount == 0 else ChargeStatus.OPEN).value
    db_charge = ChargeModel(
        rental_id=rental_id,
        due_date=due_date,
        amount=amount,
        amount_outstanding=amount,
        status=status,
    )
    savepoint = db.begin_nested()
    try:
        db.add(db_charge)
        db.flush()
    except IntegrityError:
        savepoint.rollback()
        return None
    savepoint.commit()
    return db_charge


def get_outstanding_charges_for_update(
    db: Session,
    rental_id: int | None = None,
    customer_id: int | None = None,
) -> list[ChargeModel]:
    """
    Get charges that can still receive money, oldest debt first, locking the rows.

    Scoped to one rental when rental_id is given, otherwise to every rental of
    the customer. Ties on due date are broken by creation order (id).
    """
    query = db.query(ChargeModel).filter(
        ChargeModel.status.in_(OUTSTANDING_STATUSES),
        ChargeModel.amount_outstanding > 0,
    )
    if rental_id is not None:
        query = query.filter(ChargeModel.rental_id == rental_id)
    elif customer_id is not None:
        query = query.join(RentalModel, ChargeModel.rental_id == RentalModel.id).filter(
            RentalModel.customer_id == customer_id
        )
    else:
        raise ValueError("Either rental_id or customer_id is required")

    return query.order_by(ChargeModel.due_date, ChargeModel.id).with_for_update().all()


def compare_and_set_outstanding(
    db: Session,
    charge_id: int,
    expected_outstanding: int,
    new_outstanding: int,
    new_status: str,
) -> bool:
    """
    Decrement a charge's balance only if it still holds the expected value.

    Returns False when another writer changed amount_outstanding since it was
    read, in which case nothing is written.
    """
    result = db.execute(
        update(ChargeModel)
        .where(
            ChargeModel.id == charge_id,
            ChargeModel.amount_outstanding == expected_outstanding,
        )
        .values(amount_outstanding=new_outstanding, status=new_status)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def restore_outstanding(
    db: Session, charge_id: int, amount_outstanding: int, status: str
) -> None:
    """Write back a charge balance after a reversal. Flushes only."""
    db.execute(
        update(ChargeModel)
        .where(ChargeModel.id == charge_id)
        .values(amount_outstanding=amount_outstanding, status=status)
        .execution_options(synchronize_session=False)
    )


def mark_overdue_charges(db: Session, as_of: date) -> int:
    """Flag unpaid charges whose due date has passed. Returns the row count."""
    result = db.execute(
        update(ChargeModel)
        .where(
            ChargeModel.status.in_(
                (ChargeStatus.OPEN.value, ChargeStatus.PARTIALLY_PAID.value)
            ),
            ChargeModel.amount_outstanding > 0,
            ChargeModel.due_date < as_of,
        )
        .values(status=ChargeStatus.OVERDUE.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def get_outstanding_charges_with_rental(db: Session) -> list[ChargeModel]:
    """Get every charge still owed, with its rental, customer and vehicle loaded."""
    return (
        db.query(ChargeModel)
        .options(
            joinedload(ChargeModel.rental).joinedload(RentalModel.customer),
            joinedload(ChargeModel.rental).joinedload(RentalModel.vehicle),
        )
        .filter(
            ChargeModel.status.in_(OUTSTANDING_STATUSES),
            ChargeModel.amount_outstanding > 0,
        )
        .order_by(ChargeModel.due_date, ChargeModel.id)
        .all()
    )


def delete_charges(db: Session, charge_ids: list[int]) -> int:
    """Delete charges by id. Flushes only; allocations must be removed first."""
    if not charge_ids:
        return 0
    count = (
        db.query(ChargeModel)
        .filter(ChargeModel.id.in_(charge_ids))
        .delete(synchronize_session=False)
    )
    db.flush()
    return count
