"""Single-statement ledger reads.

Each function issues one SELECT made of scalar subqueries so that every
figure it returns comes from the same database snapshot.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models.allocation import Allocation as AllocationModel
from app.db.models.charge import Charge as ChargeModel
from app.db.models.payment import Payment as PaymentModel
from app.db.models.rental import Rental as RentalModel


def _sum(column, *criteria):
    return (
        select(func.coalesce(func.sum(column), 0))
        .where(*criteria)
        .scalar_subquery()
    )


def get_rental_figures(db: Session, rental_id: int) -> dict[str, int]:
    """
    Totals for one rental.

    total_payments counts only money allocated to this rental's charges, so an
    unallocated surplus never shows up as paid-down debt.
    """
    rental_charge_ids = select(ChargeModel.id).where(ChargeModel.rental_id == rental_id)
    row = db.execute(
        select(
            _sum(ChargeModel.amount, ChargeModel.rental_id == rental_id).label(
                "total_charges"
            ),
            _sum(
                AllocationModel.amount,
                AllocationModel.charge_id.in_(rental_charge_ids),
            ).label("total_payments"),
            _sum(ChargeModel.amount_outstanding, ChargeModel.rental_id == rental_id).label(
                "outstanding"
            ),
        )
    ).one()
    return dict(row._mapping)


def get_customer_figures(db: Session, customer_id: int) -> dict[str, int]:
    """Totals across every rental of a customer, plus processed-but-unallocated money."""
    customer_rental_ids = select(RentalModel.id).where(
        RentalModel.customer_id == customer_id
    )
    customer_charge_ids = select(ChargeModel.id).where(
        ChargeModel.rental_id.in_(customer_rental_ids)
    )
    processed_payment_ids = select(PaymentModel.id).where(
        PaymentModel.customer_id == customer_id,
        PaymentModel.is_processed.is_(True),
    )
    row = db.execute(
        select(
            _sum(ChargeModel.amount, ChargeModel.rental_id.in_(customer_rental_ids)).label(
                "total_charges"
            ),
            _sum(
                AllocationModel.amount,
                AllocationModel.charge_id.in_(customer_charge_ids),
            ).label("total_payments"),
            _sum(
                ChargeModel.amount_outstanding,
                ChargeModel.rental_id.in_(customer_rental_ids),
            ).label("outstanding"),
            _sum(
                PaymentModel.amount,
                PaymentModel.customer_id == customer_id,
                PaymentModel.is_processed.is_(True),
            ).label("processed_payments"),
            _sum(
                AllocationModel.amount,
                AllocationModel.payment_id.in_(processed_payment_ids),
            ).label("allocated_from_processed"),
        )
    ).one()
    return dict(row._mapping)
