"""Invoices: numbered customer documents with line items and tax."""

import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

import app.repositories.customer as customer_repo
import app.repositories.invoice as invoice_repo
import app.repositories.rental as rental_repo
import app.repositories.vehicle as vehicle_repo
from app.db.models.invoice import Invoice as InvoiceModel
from app.domain.invoicing import (
    DELETABLE_STATUSES,
    PAYMENT_TERMS_DAYS,
    InvoiceStatus,
    LineItem,
    build_line_items,
    check_status_change,
    compute_totals,
    invoice_number_prefix,
    next_invoice_number,
)
from app.errors import ConcurrentModificationError, DomainValidationError, NotFoundError

logger = logging.getLogger(__name__)

# Attempts at claiming the next number before giving up to a concurrent writer
NUMBER_ATTEMPTS = 5

EDITABLE_FIELDS = ("issue_date", "due_date", "line_items", "tax_rate", "notes")


def get_invoice(db: Session, invoice_id: int) -> InvoiceModel:
    invoice = invoice_repo.get_invoice_by_id(db, invoice_id)
    if not invoice:
        raise NotFoundError(f"Invoice with id {invoice_id} not found")
    return invoice


def get_all_invoices(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    customer_id: int | None = None,
    rental_id: int | None = None,
    status: str | None = None,
) -> tuple[list[InvoiceModel], int]:
    return invoice_repo.get_invoices_paginated(
        db,
        page=page,
        page_size=page_size,
        customer_id=customer_id,
        rental_id=rental_id,
        status=status,
    )


def create_invoice(
    db: Session,
    customer_id: int,
    issue_date: date,
    line_items,
    due_date: date | None = None,
    tax_rate: Decimal = Decimal("0"),
    rental_id: int | None = None,
    vehicle_id: int | None = None,
    notes: str | None = None,
) -> InvoiceModel:
    """
    Create a draft invoice numbered INV-YYYYMM-NNNN in the issue month's sequence.

    - At least one line item; quantities above 0, unit prices not negative
    - Due date defaults to the issue date plus the payment terms and cannot
      be before the issue date
    - Customer must exist; rental, when given, must belong to the customer and
      supplies the vehicle unless one is given
    - Customer, vehicle and rental details are copied onto the invoice

    Raises:
        DomainValidationError: On invalid line items, dates, tax rate or rental ownership
        NotFoundError: If a referenced record doesn't exist
        ConcurrentModificationError: If no free number could be claimed
    """
    items = build_line_items(line_items)
    totals = compute_totals(items, tax_rate)

    if due_date is None:
        due_date = issue_date + timedelta(days=PAYMENT_TERMS_DAYS)
    if due_date < issue_date:
        raise DomainValidationError("Due date cannot be before the issue date")

    customer = customer_repo.get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError(f"Customer with id {customer_id} not found")

    rental = None
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

    vehicle = None
    if vehicle_id is not None:
        vehicle = vehicle_repo.get_vehicle_by_id(db, vehicle_id)
        if not vehicle:
            raise NotFoundError(f"Vehicle with id {vehicle_id} not found")

    fields = dict(
        customer_id=customer_id,
        rental_id=rental_id,
        vehicle_id=vehicle_id,
        issue_date=issue_date,
        due_date=due_date,
        customer_name=customer.name,
        customer_email=customer.email,
        customer_phone=customer.phone,
        vehicle_reg=vehicle.reg if vehicle else None,
        vehicle_make=vehicle.make if vehicle else None,
        vehicle_model=vehicle.model if vehicle else None,
        rental_start_date=rental.start_date if rental else None,
        rental_end_date=rental.end_date if rental else None,
        line_items=[item.as_dict() for item in items],
        subtotal=totals.subtotal,
        tax_rate=Decimal(tax_rate),
        tax_amount=totals.tax_amount,
        total_amount=totals.total,
        status=InvoiceStatus.DRAFT.value,
        notes=notes,
    )

    prefix = invoice_number_prefix(issue_date)
    try:
        invoice = None
        for _ in range(NUMBER_ATTEMPTS):
            last_number = invoice_repo.get_latest_invoice_number(db, prefix)
            invoice_number = next_invoice_number(issue_date, last_number)
            invoice = invoice_repo.add_invoice(db, invoice_number=invoice_number, **fields)
            if invoice is not None:
                break
            logger.warning("Invoice number %s already taken, retrying", invoice_number)
        if invoice is None:
            raise ConcurrentModificationError(
                f"Could not claim an invoice number in the {prefix} sequence"
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Created invoice %s for customer %s: total %d",
        invoice.invoice_number,
        customer_id,
        invoice.total_amount,
    )
    return get_invoice(db, invoice.id)


def create_invoice_from_rental(
    db: Session,
    rental_id: int,
    issue_date: date,
    periods: int = 1,
    tax_rate: Decimal = Decimal("0"),
    due_date: date | None = None,
    notes: str | None = None,
) -> InvoiceModel:
    """
    Invoice ``periods`` billing periods of a rental at its periodic amount.

    The single line item names the cadence and the vehicle.
    """
    rental = rental_repo.get_rental_by_id(db, rental_id)
    if not rental:
        raise NotFoundError(f"Rental with id {rental_id} not found")
    if periods <= 0:
        raise DomainValidationError("Number of periods must be greater than 0")

    vehicle = vehicle_repo.get_vehicle_by_id(db, rental.vehicle_id)
    vehicle_name = " ".join(part for part in (vehicle.make, vehicle.model) if part)
    description = f"{rental.cadence} rental fee: " + (
        f"{vehicle_name} ({vehicle.reg})" if vehicle_name else vehicle.reg
    )

    return create_invoice(
        db,
        customer_id=rental.customer_id,
        issue_date=issue_date,
        line_items=[
            LineItem(
                description=description,
                quantity=periods,
                unit_price=rental.periodic_amount,
            )
        ],
        due_date=due_date,
        tax_rate=tax_rate,
        rental_id=rental.id,
        vehicle_id=rental.vehicle_id,
        notes=notes,
    )


def update_invoice(db: Session, invoice_id: int, **update_fields) -> InvoiceModel:
    """
    Update a draft invoice.

    Only fields explicitly provided are changed; totals are recomputed from
    the resulting line items and tax rate. The issue date cannot leave the month
    of the invoice number.

    Raises:
        NotFoundError: If the invoice doesn't exist
        DomainValidationError: If the invoice is not a draft, or the result is invalid
    """
    invoice = get_invoice(db, invoice_id)
    if invoice.status != InvoiceStatus.DRAFT.value:
        raise DomainValidationError(
            f"Invoice {invoice.invoice_number} is {invoice.status}; only drafts can be edited"
        )

    changes = {k: v for k, v in update_fields.items() if k in EDITABLE_FIELDS}

    issue_date = changes.get("issue_date") or invoice.issue_date
    if invoice_number_prefix(issue_date) != invoice_number_prefix(invoice.issue_date):
        raise DomainValidationError(
            f"Issue date {issue_date} is outside the month of invoice {invoice.invoice_number}"
        )
    changes["issue_date"] = issue_date

    due_date = changes.get("due_date") or invoice.due_date
    if due_date < issue_date:
        raise DomainValidationError("Due date cannot be before the issue date")
    changes["due_date"] = due_date

    line_items = changes.get("line_items")
    items = build_line_items(invoice.line_items if line_items is None else line_items)
    tax_rate = changes.get("tax_rate")
    if tax_rate is None:
        tax_rate = invoice.tax_rate
    totals = compute_totals(items, tax_rate)
    changes.update(
        line_items=[item.as_dict() for item in items],
        tax_rate=Decimal(tax_rate),
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total_amount=totals.total,
    )

    try:
        invoice_repo.update_invoice(db, invoice, **changes)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Updated invoice %s", invoice.invoice_number)
    return get_invoice(db, invoice_id)


def update_invoice_status(db: Session, invoice_id: int, status: str) -> InvoiceModel:
    """
    Move an invoice along draft -> sent -> paid; draft and sent invoices can be voided.

    Raises:
        NotFoundError: If the invoice doesn't exist
        DomainValidationError: If the move is not allowed
    """
    invoice = get_invoice(db, invoice_id)
    previous = invoice.status
    target = check_status_change(previous, status)

    try:
        invoice_repo.update_invoice(db, invoice, status=target.value)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Invoice %s moved from %s to %s", invoice.invoice_number, previous, target.value)
    return get_invoice(db, invoice_id)


def delete_invoice(db: Session, invoice_id: int) -> None:
    """
    Delete a draft or void invoice. Sent and paid invoices are kept.

    Raises:
        NotFoundError: If the invoice doesn't exist
        DomainValidationError: If the invoice has been sent or paid
    """
    invoice = get_invoice(db, invoice_id)
    if invoice.status not in {s.value for s in DELETABLE_STATUSES}:
        raise DomainValidationError(
            f"Invoice {invoice.invoice_number} is {invoice.status} and cannot be deleted"
        )

    invoice_number = invoice.invoice_number
    try:
        invoice_repo.delete_invoice(db, invoice_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Deleted invoice %s", invoice_number)
