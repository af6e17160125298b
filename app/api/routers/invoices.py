from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.db.models.user import User as UserModel
from app.schemas.invoice import (
    Invoice,
    InvoiceCreate,
    InvoiceFromRental,
    InvoiceStatusUpdate,
    InvoiceUpdate,
)
from app.schemas.pagination import PaginatedResponse
from app.services import invoice as invoice_service

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Create a draft invoice. The number is assigned from the issue month's sequence."""
    fields = invoice_data.model_dump()
    fields["issue_date"] = fields["issue_date"] or date.today()
    invoice = invoice_service.create_invoice(db, **fields)
    return Invoice.model_validate(invoice)


@router.post("/from-rental", response_model=Invoice, status_code=status.HTTP_201_CREATED)
def create_invoice_from_rental(
    invoice_data: InvoiceFromRental,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    fields = invoice_data.model_dump()
    fields["issue_date"] = fields["issue_date"] or date.today()
    invoice = invoice_service.create_invoice_from_rental(db, **fields)
    return Invoice.model_validate(invoice)


@router.get("", response_model=PaginatedResponse[Invoice])
def get_all_invoices(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    customer_id: int | None = Query(None),
    rental_id: int | None = Query(None),
    status: str | None = Query(None, description="draft, sent, paid or void"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    invoices, total = invoice_service.get_all_invoices(
        db,
        page=page,
        page_size=page_size,
        customer_id=customer_id,
        rental_id=rental_id,
        status=status,
    )
    return PaginatedResponse(
        items=[Invoice.model_validate(i) for i in invoices],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{invoice_id}", response_model=Invoice)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    invoice = invoice_service.get_invoice(db, invoice_id)
    return Invoice.model_validate(invoice)


@router.put("/{invoice_id}", response_model=Invoice)
def update_invoice(
    invoice_id: int,
    invoice_data: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Edit a draft invoice. Totals are recalculated."""
    invoice = invoice_service.update_invoice(
        db, invoice_id, **invoice_data.model_dump(exclude_unset=True)
    )
    return Invoice.model_validate(invoice)


@router.patch("/{invoice_id}/status", response_model=Invoice)
def update_invoice_status(
    invoice_id: int,
    status_data: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    invoice = invoice_service.update_invoice_status(db, invoice_id, status_data.status)
    return Invoice.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Delete a draft or void invoice."""
    invoice_service.delete_invoice(db, invoice_id)
