from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.invoice import Invoice as InvoiceModel


def get_invoice_by_id(db: Session, invoice_id: int) -> InvoiceModel | None:
    """Get an invoice by ID."""
    return db.query(InvoiceModel).filter(InvoiceModel.id == invoice_id).first()


def get_invoice_by_number(db: Session, invoice_number: str) -> InvoiceModel | None:
    return (
        db.query(InvoiceModel).filter(InvoiceModel.invoice_number == invoice_number).first()
    )


def get_invoices_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    customer_id: int | None = None,
    rental_id: int | None = None,
    status: str | None = None,
) -> tuple[list[InvoiceModel], int]:
    """
    Get invoices with pagination and optional filters, newest first.

    Returns:
        Tuple of (list of invoices, total count)
    """
    query = db.query(InvoiceModel)
    if customer_id is not None:
        query = query.filter(InvoiceModel.customer_id == customer_id)
    if rental_id is not None:
        query = query.filter(InvoiceModel.rental_id == rental_id)
    if status is not None:
        query = query.filter(InvoiceModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    invoices = (
        query.order_by(InvoiceModel.issue_date.desc(), InvoiceModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return invoices, total


def get_invoices_by_customer_id(db: Session, customer_id: int) -> list[InvoiceModel]:
    return db.query(InvoiceModel).filter(InvoiceModel.customer_id == customer_id).all()


def get_invoices_by_vehicle_id(db: Session, vehicle_id: int) -> list[InvoiceModel]:
    return db.query(InvoiceModel).filter(InvoiceModel.vehicle_id == vehicle_id).all()


def get_latest_invoice_number(db: Session, prefix: str) -> str | None:
    """
    Highest invoice number starting with ``prefix``.

    Longer numbers sort first so a sequence that outgrows its padding still
    yields the true maximum.
    """
    row = (
        db.query(InvoiceModel.invoice_number)
        .filter(InvoiceModel.invoice_number.like(f"{prefix}%"))
        .order_by(
            func.length(InvoiceModel.invoice_number).desc(),
            InvoiceModel.invoice_number.desc(),
        )
        .first()
    )
    return row.invoice_number if row else None


def add_invoice(db: Session, **fields) -> InvoiceModel | None:
    """
    Insert an invoice inside a savepoint.

    Returns None when the invoice number is already taken, which happens when
    a concurrent request claimed the same number first. Flushes only; the
    caller owns the transaction.
    """
    db_invoice = InvoiceModel(**fields)
    savepoint = db.begin_nested()
    try:
        db.add(db_invoice)
        db.flush()
    except IntegrityError:
        savepoint.rollback()
        return None
    savepoint.commit()
    return db_invoice


def update_invoice(db: Session, invoice: InvoiceModel, **fields) -> InvoiceModel:
    """Set the given columns on an invoice. Flushes only."""
    for field, value in fields.items():
        setattr(invoice, field, value)
    db.flush()
    return invoice


def delete_invoice(db: Session, invoice_id: int) -> None:
    db.query(InvoiceModel).filter(InvoiceModel.id == invoice_id).delete(
        synchronize_session=False
    )
    db.flush()


def detach_rental_invoices(db: Session, rental_id: int) -> int:
    """Clear the rental reference on its invoices, keeping the documents. Flushes only."""
    updated = (
        db.query(InvoiceModel)
        .filter(InvoiceModel.rental_id == rental_id)
        .update({InvoiceModel.rental_id: None}, synchronize_session=False)
    )
    db.flush()
    return updated
