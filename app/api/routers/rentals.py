from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.db.models.user import User as UserModel
from app.schemas.charge import Charge, RolloverResult
from app.schemas.ledger import LedgerTotals
from app.schemas.pagination import PaginatedResponse
from app.schemas.rental import Rental, RentalCreate
from app.services import rental as rental_service
from app.services.charge import get_rental_charges, rollover_rental
from app.services.ledger import get_rental_totals

router = APIRouter(prefix="/rentals", tags=["rentals"])


@router.post("", response_model=Rental, status_code=status.HTTP_201_CREATED)
def create_rental(
    rental_data: RentalCreate,
    as_of: date | None = Query(None, description="Booking date (defaults to today)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Book a rental.

    Generates the first period's charge, marks the vehicle as rented and, when
    initial_fee is given, records it as a payment and applies it.
    """
    rental = rental_service.create_rental(
        db,
        **rental_data.model_dump(),
        as_of=as_of or date.today(),
    )
    return Rental.model_validate(rental)


@router.get("", response_model=PaginatedResponse[Rental])
def get_all_rentals(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    customer_id: int | None = Query(None),
    vehicle_id: int | None = Query(None),
    status: str | None = Query(None, description="Upcoming, Active or Closed"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    rentals, total = rental_service.get_all_rentals(
        db,
        page=page,
        page_size=page_size,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        status=status,
    )
    return PaginatedResponse(
        items=[Rental.model_validate(r) for r in rentals],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{rental_id}", response_model=Rental)
def get_rental(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    rental = rental_service.get_rental(db, rental_id)
    return Rental.model_validate(rental)


@router.get("/{rental_id}/charges", response_model=list[Charge])
def list_rental_charges(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    charges = get_rental_charges(db, rental_id)
    return [Charge.model_validate(c) for c in charges]


@router.get("/{rental_id}/ledger", response_model=LedgerTotals)
def get_rental_ledger(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    """Total charged, total paid (allocated) and outstanding for a rental."""
    totals = get_rental_totals(db, rental_id)
    return LedgerTotals.model_validate(totals)


@router.post("/{rental_id}/rollover", response_model=RolloverResult)
def rollover(
    rental_id: int,
    as_of: date | None = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Generate the charges for every billing period elapsed up to as_of."""
    as_of = as_of or date.today()
    created = rollover_rental(db, rental_id, as_of)
    return RolloverResult(as_of=as_of, created=[Charge.model_validate(c) for c in created])


@router.post("/{rental_id}/close", response_model=Rental)
def close_rental(
    rental_id: int,
    as_of: date | None = Query(None, description="Close date (defaults to today)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    rental = rental_service.close_rental(db, rental_id, as_of or date.today())
    return Rental.model_validate(rental)


@router.delete("/{rental_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rental(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Delete a rental with its charges, allocations, payments and reminders."""
    rental_service.delete_rental(db, rental_id)
