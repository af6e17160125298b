from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.db.models.user import User as UserModel
from app.schemas.customer import Customer, CustomerCreate, CustomerUpdate
from app.schemas.ledger import CustomerNetPosition
from app.schemas.pagination import PaginatedResponse
from app.services import customer as customer_service
from app.services.ledger import get_customer_net_position

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Create a new customer. Only admin users can create customers."""
    customer = customer_service.create_customer(db, **customer_data.model_dump())
    return Customer.model_validate(customer)


@router.get("", response_model=PaginatedResponse[Customer])
def get_all_customers(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    name: str | None = Query(None, description="Filter customers by name (partial match)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    customers, total = customer_service.get_all_customers(
        db, page=page, page_size=page_size, name=name
    )
    return PaginatedResponse(
        items=[Customer.model_validate(c) for c in customers],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{customer_id}", response_model=Customer)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    customer = customer_service.get_customer(db, customer_id)
    return Customer.model_validate(customer)


@router.get("/{customer_id}/net-position", response_model=CustomerNetPosition)
def get_net_position(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    """
    Get the customer's ledger position summed across all their rentals.

    unallocated_credit is money from processed payments not allocated to any charge.
    """
    position = get_customer_net_position(db, customer_id)
    return CustomerNetPosition.model_validate(position)


@router.put("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Update a customer. Only fields present in the request body are changed."""
    customer = customer_service.update_customer(
        db, customer_id, **customer_data.model_dump(exclude_unset=True)
    )
    return Customer.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Delete a customer. Only admin users can delete customers.

    A customer can only be deleted if they have no rentals and no payments.
    """
    customer_service.delete_customer(db, customer_id)
