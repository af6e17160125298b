from sqlalchemy.orm import Session

from app.db.models.allocation import Allocation as AllocationModel


def add_allocation(
    db: Session, payment_id: int, charge_id: int, amount: int
) -> AllocationModel:
    """Add an allocation to the session. Flushes only; the caller owns the transaction."""
    db_allocation = AllocationModel(
        payment_id=payment_id,
        charge_id=charge_id,
        amount=amount,
    )
    db.add(db_allocation)
    db.flush()
    return db_allocation


def get_allocations_by_payment_id(db: Session, payment_id: int) -> list[AllocationModel]:
    """Get all allocations made from a payment, in the order they were created."""
    return (
        db.query(AllocationModel)
        .filter(AllocationModel.payment_id == payment_id)
        .order_by(AllocationModel.id)
        .all()
    )


def get_allocations_by_charge_id(db: Session, charge_id: int) -> list[AllocationModel]:
    """Get all allocations made against a charge."""
    return (
        db.query(AllocationModel)
        .filter(AllocationModel.charge_id == charge_id)
        .order_by(AllocationModel.id)
        .all()
    )


def delete_allocations_by_payment_id(db: Session, payment_id: int) -> None:
    db.query(AllocationModel).filter(AllocationModel.payment_id == payment_id).delete(
        synchronize_session=False
    )
