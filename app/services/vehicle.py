from sqlalchemy.orm import Session

import app.repositories.invoice as invoice_repo
import app.repositories.rental as rental_repo
import app.repositories.vehicle as vehicle_repo
from app.db.models.vehicle import Vehicle as VehicleModel
from app.errors import DomainValidationError, DuplicateResourceError, NotFoundError


def _normalize_reg(reg: str) -> str:
    return reg.replace(" ", "").upper()


def get_vehicle(db: Session, vehicle_id: int) -> VehicleModel:
    vehicle = vehicle_repo.get_vehicle_by_id(db, vehicle_id)
    if not vehicle:
        raise NotFoundError(f"Vehicle with id {vehicle_id} not found")
    return vehicle


def get_all_vehicles(
    db: Session, page: int = 1, page_size: int = 100, status: str | None = None
) -> tuple[list[VehicleModel], int]:
    return vehicle_repo.get_all_vehicles_paginated(
        db, page=page, page_size=page_size, status=status
    )


def create_vehicle(db: Session, reg: str, **fields) -> VehicleModel:
    """
    Create a vehicle with domain validation.

    - Registration is stored upper-case without spaces
    - Enforces uniqueness of the registration

    Raises:
        DuplicateResourceError: If the registration already exists
    """
    reg = _normalize_reg(reg)
    if vehicle_repo.get_vehicle_by_reg(db, reg):
        raise DuplicateResourceError(f"A vehicle with registration {reg} already exists")
    return vehicle_repo.create_vehicle(db, reg=reg, **fields)


def update_vehicle(db: Session, vehicle_id: int, **update_fields) -> VehicleModel:
    """
    Update a vehicle with domain validation.

    Raises:
        NotFoundError: If vehicle doesn't exist
        DuplicateResourceError: If the new registration is taken by another vehicle
    """
    get_vehicle(db, vehicle_id)

    if update_fields.get("reg") is not None:
        update_fields["reg"] = _normalize_reg(update_fields["reg"])
        if vehicle_repo.get_vehicle_by_reg(db, update_fields["reg"], exclude_id=vehicle_id):
            raise DuplicateResourceError(
                f"A vehicle with registration {update_fields['reg']} already exists"
            )
    elif "reg" in update_fields:
        raise DomainValidationError("Registration cannot be cleared")

    return vehicle_repo.update_vehicle(db, vehicle_id, **update_fields)


def delete_vehicle(db: Session, vehicle_id: int) -> None:
    """
    Delete a vehicle. A vehicle can only be deleted if it was never rented
    or invoiced.

    Raises:
        NotFoundError: If vehicle doesn't exist
        DomainValidationError: If vehicle has rentals or invoices
    """
    get_vehicle(db, vehicle_id)
    if rental_repo.get_rentals_by_vehicle_id(db, vehicle_id):
        raise DomainValidationError(
            f"Cannot delete vehicle {vehicle_id}: vehicle has associated rentals"
        )
    if invoice_repo.get_invoices_by_vehicle_id(db, vehicle_id):
        raise DomainValidationError(
            f"Cannot delete vehicle {vehicle_id}: vehicle has associated invoices"
        )
    vehicle_repo.delete_vehicle(db, vehicle_id)
