from datetime import date, datetime

from sqlalchemy.orm import Session

from app.db.models.payment import Payment as PaymentModel


def get_payment_by_id(db: Session, payment_id: int) -> PaymentModel | None:
    """Get a payment by ID."""
    return db.query(PaymentModel).filter(PaymentModel.id == payment_id).first()


def get_payment_for_update(db: Session, payment_id: int) -> PaymentModel | None:
    """Get a payment by ID, locking the row for the current transaction."""
    return (
        db.query(PaymentModel)
        .filter(PaymentModel.id == payment_id)
        .with_for_update()
        .first()
    )


def get_payments_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    customer_id: int | None = None,
    rental_id: int | None = None,
    processed: bool | None = None,
) -> tuple[list[PaymentModel], int]:
    """
    Get payments with pagination and optional filters, newest first.

    Returns:
        Tuple of (list of payments, total count)
    """
    query = db.query(PaymentModel)
    if customer_id is not None:
        query = query.filter(PaymentModel.customer_id == customer_id)
    if rental_id is not None:
        query = query.filter(PaymentModel.rental_id == rental_id)
    if processed is not None:
        query = query.filter(PaymentModel.is_processed == processed)

    total = query.count()
    skip = (page - 1) * page_size
    payments = (
        query.order_by(PaymentModel.payment_date.desc(), PaymentModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return payments, total


def get_payments_by_customer_id(db: Session, customer_id: int) -> list[PaymentModel]:
    return db.query(PaymentModel).filter(PaymentModel.customer_id == customer_id).all()


def add_payment(
    db: Session,
    customer_id: int,
    amount: int,
    payment_date: date,
    payment_type: str,
    rental_id: int | None = None,
    vehicle_id: int | None = None,
    method: str | None = None,
) -> PaymentModel:
    """Add an unprocessed payment to the session. Flushes only; the caller owns the transaction."""
    db_payment = PaymentModel(
        customer_id=customer_id,
        rental_id=rental_id,
        vehicle_id=vehicle_id,
        amount=amount,
        payment_date=payment_date,
        payment_type=payment_type,
        method=method,
        is_processed=False,
    )
    db.add(db_payment)
    db.flush()
    return db_payment


def mark_processed(db: Session, payment: PaymentModel, processed_at: datetime) -> None:
    payment.is_processed = True
    payment.processed_at = processed_at
    payment.processing_error = None
    db.flush()


def flag_unprocessed(db: Session, payment_id: int, error: str) -> None:
    """Record why processing failed and leave the payment unprocessed. Commits."""
    payment = get_payment_by_id(db, payment_id)
    if payment is None:
        return
    payment.is_processed = False
    payment.processed_at = None
    payment.processing_error = error
    db.commit()


def delete_payment(db: Session, payment_id: int) -> None:
    """Delete a payment row. Flushes only; allocations must be removed first."""
    db.query(PaymentModel).filter(PaymentModel.id == payment_id).delete(
        synchronize_session=False
    )
    db.flush()
