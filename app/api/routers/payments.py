from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.db.models.user import User as UserModel
from app.schemas.pagination import PaginatedResponse
from app.schemas.payment import Allocation, Payment, PaymentApplication, PaymentCreate
from app.services import payment as payment_service

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentApplication, status_code=status.HTTP_201_CREATED)
def record_payment(
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Record a payment and allocate it to outstanding charges, oldest first.

    If allocation fails with a concurrent modification the payment stays
    recorded and unprocessed; retry with POST /payments/{id}/apply.
    """
    fields = payment_data.model_dump()
    fields["payment_date"] = fields["payment_date"] or date.today()
    payment = payment_service.record_payment(db, **fields)
    application = payment_service.apply_payment(db, payment.id)
    return PaymentApplication.model_validate(application)


@router.get("", response_model=PaginatedResponse[Payment])
def get_all_payments(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    customer_id: int | None = Query(None),
    rental_id: int | None = Query(None),
    processed: bool | None = Query(None, description="Filter by processing status"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    payments, total = payment_service.get_all_payments(
        db,
        page=page,
        page_size=page_size,
        customer_id=customer_id,
        rental_id=rental_id,
        processed=processed,
    )
    return PaginatedResponse(
        items=[Payment.model_validate(p) for p in payments],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{payment_id}", response_model=Payment)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    payment = payment_service.get_payment(db, payment_id)
    return Payment.model_validate(payment)


@router.get("/{payment_id}/allocations", response_model=list[Allocation])
def get_payment_allocations(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    allocations = payment_service.get_payment_allocations(db, payment_id)
    return [Allocation.model_validate(a) for a in allocations]


@router.post("/{payment_id}/apply", response_model=PaymentApplication)
def apply_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Apply (or retry applying) a payment. Applying a processed payment changes nothing."""
    application = payment_service.apply_payment(db, payment_id)
    return PaymentApplication.model_validate(application)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: int,
    as_of: date | None = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Delete a payment, reversing its allocations and restoring the charges' balances."""
    payment_service.delete_payment(db, payment_id, as_of or date.today())
