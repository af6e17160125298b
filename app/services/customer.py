from sqlalchemy.orm import Session

import app.repositories.customer as customer_repo
import app.repositories.invoice as invoice_repo
import app.repositories.payment as payment_repo
import app.repositories.rental as rental_repo
from app.db.models.customer import Customer as CustomerModel
from app.errors import DomainValidationError, NotFoundError


def get_customer(db: Session, customer_id: int) -> CustomerModel:
    customer = customer_repo.get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError(f"Customer with id {customer_id} not found")
    return customer


def get_all_customers(
    db: Session, page: int = 1, page_size: int = 100, name: str | None = None
) -> tuple[list[CustomerModel], int]:
    return customer_repo.get_all_customers_paginated(
        db, page=page, page_size=page_size, name=name
    )


def create_customer(
    db: Session,
    name: str,
    customer_type: str,
    email: str | None = None,
    phone: str | None = None,
) -> CustomerModel:
    return customer_repo.create_customer(
        db, name=name, customer_type=customer_type, email=email, phone=phone
    )


def update_customer(db: Session, customer_id: int, **update_fields) -> CustomerModel:
    """
    Update a customer.

    Only fields explicitly provided in update_fields will be updated.
    """
    get_customer(db, customer_id)
    return customer_repo.update_customer(db, customer_id, **update_fields)


def delete_customer(db: Session, customer_id: int) -> None:
    """
    Delete a customer.

    A customer can only be deleted if they have no rentals, payments or
    invoices.

    Raises:
        NotFoundError: If customer doesn't exist
        DomainValidationError: If customer has rentals, payments or invoices
    """
    get_customer(db, customer_id)

    if rental_repo.get_rentals_by_customer_id(db, customer_id):
        raise DomainValidationError(
            f"Cannot delete customer {customer_id}: customer has associated rentals"
        )
    if payment_repo.get_payments_by_customer_id(db, customer_id):
        raise DomainValidationError(
            f"Cannot delete customer {customer_id}: customer has recorded payments"
        )
    if invoice_repo.get_invoices_by_customer_id(db, customer_id):
        raise DomainValidationError(
            f"Cannot delete customer {customer_id}: customer has invoices"
        )

    customer_repo.delete_customer(db, customer_id)
