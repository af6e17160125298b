from sqlalchemy.orm import Session

from app.db.models.customer import Customer as CustomerModel
from app.errors import NotFoundError


def get_customer_by_id(db: Session, customer_id: int) -> CustomerModel | None:
    """Get a customer by ID."""
    return db.query(CustomerModel).filter(CustomerModel.id == customer_id).first()


def get_all_customers_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    name: str | None = None,
) -> tuple[list[CustomerModel], int]:
    """
    Get customers with pagination, optionally filtered by name (case-insensitive partial match).

    Returns:
        Tuple of (list of customers, total count)
    """
    query = db.query(CustomerModel)
    if name:
        query = query.filter(CustomerModel.name.ilike(f"%{name}%"))

    total = query.count()
    skip = (page - 1) * page_size
    customers = (
        query.order_by(CustomerModel.name, CustomerModel.id)
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return customers, total


def create_customer(
    db: Session,
    name: str,
    customer_type: str,
    email: str | None = None,
    phone: str | None = None,
) -> CustomerModel:
    """Create a new customer in the database. Pure data access - no business logic."""
    db_customer = CustomerModel(
        name=name,
        email=email,
        phone=phone,
        customer_type=customer_type,
    )
    db.add(db_customer)
    db.commit()
    db.refresh(db_customer)
    return db_customer


def update_customer(db: Session, customer_id: int, **kwargs) -> CustomerModel:
    """
    Update a customer. Only updates fields that are explicitly provided.

    To clear a field (set to None), explicitly pass it with None value.
    """
    customer = get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")

    for field in ("name", "email", "phone", "customer_type"):
        if field in kwargs:
            setattr(customer, field, kwargs[field])

    db.commit()
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: int) -> None:
    """Delete a customer from the database. Pure data access - no business logic."""
    customer = get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")

    db.delete(customer)
    db.commit()
