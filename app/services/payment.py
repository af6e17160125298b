"""Payment Allocator: records payments and spreads them over outstanding charges."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import app.repositories.allocation as allocation_repo
import app.repositories.charge as charge_repo
import app.repositories.customer as customer_repo
import app.repositories.payment as payment_repo
import app.repositories.rental as rental_repo
import app.repositories.vehicle as vehicle_repo
from app.db.models.allocation import Allocation as AllocationModel
from app.db.models.payment import Payment as PaymentModel
from app.domain.allocation import OutstandingCharge, plan_allocation
from app.domain.billing import PaymentType, derive_charge_status, status_after_allocation
from app.errors import (
    ConcurrentModificationError,
    DomainValidationError,
    LedgerIntegrityError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class PaymentApplication:
    """Outcome of applying a payment.

    ``already_processed`` is set when the payment had been applied before and
    nothing was written; ``no_outstanding_charges`` when there was nothing to
    allocate against. Neither is an error.
    """

    payment: PaymentModel
    allocations: list[AllocationModel] = field(default_factory=list)
    unallocated: int = 0
    already_processed: bool = False
    no_outstanding_charges: bool = False


def record_payment(
    db: Session,
    customer_id: int,
    amount: int,
    payment_date: date,
    payment_type: str = PaymentType.RENTAL.value,
    rental_id: int | None = None,
    vehicle_id: int | None = None,
    method: str | None = None,
) -> PaymentModel:
    """
    Persist a payment, unprocessed. Nothing is allocated yet.

    - Amount must be greater than 0
    - Customer must exist
    - Rental, when given, must exist and belong to the customer; the payment
      inherits the rental's vehicle unless one is given
    - Vehicle, when given, must exist

    Raises:
        DomainValidationError: On invalid amount, type or rental ownership
        NotFoundError: If a referenced record doesn't exist
    """
    if amount <= 0:
        raise DomainValidationError("Payment amount must be greater than 0")

    try:
        payment_type = PaymentType(payment_type).value
    except ValueError:
        raise DomainValidationError(f"Unsupported payment type '{payment_type}'") from None

    if not customer_repo.get_customer_by_id(db, customer_id):
        raise NotFoundError(f"Customer with id {customer_id} not found")

    if rental_id is not None:
        rental = rental_repo.get_rental_by_id(db, rental_id)
        if not rental:
            raise NotFoundError(f"Rental with id {rental_id} not found")
        if rental.customer_id != customer_id:
            raise DomainValidationError(
                f"Rental {rental_id} does not belong to customer {customer_id}"
            )
        if vehicle_id is None:
            vehicle_id = rental.vehicle_id

    if vehicle_id is not None and not vehicle_repo.get_vehicle_by_id(db, vehicle_id):
        raise NotFoundError(f"Vehicle with id {vehicle_id} not found")

    payment = payment_repo.add_payment(
        db,
        customer_id=customer_id,
        rental_id=rental_id,
        vehicle_id=vehicle_id,
        amount=amount,
        payment_date=payment_date,
        payment_type=payment_type,
        method=method,
    )
    db.commit()
    db.refresh(payment)
    logger.info(
        "Recorded payment %s of %s for customer %s (rental %s)",
        payment.id,
        amount,
        customer_id,
        rental_id,
    )
    return payment


def apply_payment(db: Session, payment_id: int) -> PaymentApplication:
    """
    Allocate a payment to outstanding charges, oldest debt first.

    Charges are those of the payment's rental, or of every rental of the
    customer when the payment names no rental. The payment row and the charge
    rows are locked for the transaction, and every balance decrement is
    conditional on the balance read, so a charge is never over-allocated.

    Applying a payment that is already processed writes nothing and returns
    its existing allocations. Any surplus stays unallocated on the payment.

    Raises:
        NotFoundError: If the payment doesn't exist
        ConcurrentModificationError: If a charge balance changed underneath us.
            Nothing is allocated and the payment stays unprocessed with
            processing_error set; retry the whole call.
    """
    payment = payment_repo.get_payment_for_update(db, payment_id)
    if not payment:
        raise NotFoundError(f"Payment with id {payment_id} not found")

    if payment.is_processed:
        allocations = allocation_repo.get_allocations_by_payment_id(db, payment_id)
        db.commit()
        return PaymentApplication(
            payment=payment,
            allocations=allocations,
            unallocated=payment.amount - sum(a.amount for a in allocations),
            already_processed=True,
        )

    if payment.amount <= 0:
        raise DomainValidationError("Payment amount must be greater than 0")

    try:
        charges = charge_repo.get_outstanding_charges_for_update(
            db, rental_id=payment.rental_id, customer_id=payment.customer_id
        )
        plan = plan_allocation(
            payment.amount,
            [
                OutstandingCharge(
                    charge_id=c.id,
                    due_date=c.due_date,
                    amount_outstanding=c.amount_outstanding,
                )
                for c in charges
            ],
        )

        allocations = []
        for step in plan.steps:
            updated = charge_repo.compare_and_set_outstanding(
                db,
                step.charge_id,
                expected_outstanding=step.expected_outstanding,
                new_outstanding=step.remaining_outstanding,
                new_status=status_after_allocation(step.remaining_outstanding).value,
            )
            if not updated:
                raise ConcurrentModificationError(
                    f"Charge {step.charge_id} changed while applying payment {payment_id}"
                )
            allocations.append(
                allocation_repo.add_allocation(
                    db, payment_id=payment.id, charge_id=step.charge_id, amount=step.amount
                )
            )

        payment_repo.mark_processed(db, payment, datetime.now(timezone.utc))
        db.commit()
    except (ConcurrentModificationError, SQLAlchemyError) as exc:
        db.rollback()
        payment_repo.flag_unprocessed(db, payment_id, str(exc))
        logger.warning("Payment %s left unprocessed: %s", payment_id, exc)
        raise

    db.refresh(payment)
    for allocation in allocations:
        db.refresh(allocation)

    if not plan.steps:
        logger.info(
            "Payment %s processed with no outstanding charges; %s unallocated",
            payment_id,
            plan.unallocated,
        )
    else:
        logger.info(
            "Applied payment %s: %s allocated over %d charge(s), %s unallocated",
            payment_id,
            plan.allocated,
            len(plan.steps),
            plan.unallocated,
        )

    return PaymentApplication(
        payment=payment,
        allocations=allocations,
        unallocated=plan.unallocated,
        no_outstanding_charges=not charges,
    )


def delete_payment(db: Session, payment_id: int, as_of: date) -> None:
    """
    Reverse and delete a payment in one transaction.

    Every allocation made from the payment is removed and the affected
    charges get their balance back, with status re-derived as of ``as_of``.

    Raises:
        NotFoundError: If the payment doesn't exist
        LedgerIntegrityError: If restoring a balance would exceed the charge amount
    """
    payment = payment_repo.get_payment_for_update(db, payment_id)
    if not payment:
        raise NotFoundError(f"Payment with id {payment_id} not found")

    try:
        allocations = allocation_repo.get_allocations_by_payment_id(db, payment_id)
        for allocation in allocations:
            charge = charge_repo.get_charge_by_id(db, allocation.charge_id)
            restored = charge.amount_outstanding + allocation.amount
            if restored > charge.amount:
                raise LedgerIntegrityError(
                    f"Reversing payment {payment_id} would restore charge {charge.id} "
                    f"to {restored}, above its amount {charge.amount}"
                )
            status = derive_charge_status(
                amount=charge.amount,
                amount_outstanding=restored,
                due_date=charge.due_date,
                as_of=as_of,
            )
            charge_repo.restore_outstanding(db, charge.id, restored, status.value)

        allocation_repo.delete_allocations_by_payment_id(db, payment_id)
        payment_repo.delete_payment(db, payment_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Deleted payment %s and reversed %d allocation(s)", payment_id, len(allocations)
    )


def get_payment(db: Session, payment_id: int) -> PaymentModel:
    payment = payment_repo.get_payment_by_id(db, payment_id)
    if not payment:
        raise NotFoundError(f"Payment with id {payment_id} not found")
    return payment


def get_payment_allocations(db: Session, payment_id: int) -> list[AllocationModel]:
    get_payment(db, payment_id)
    return allocation_repo.get_allocations_by_payment_id(db, payment_id)


def get_all_payments(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    customer_id: int | None = None,
    rental_id: int | None = None,
    processed: bool | None = None,
) -> tuple[list[PaymentModel], int]:
    return payment_repo.get_payments_paginated(
        db,
        page=page,
        page_size=page_size,
        customer_id=customer_id,
        rental_id=rental_id,
        processed=processed,
    )
