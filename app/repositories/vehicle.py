from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.db.models.vehicle import Vehicle as VehicleModel
from app.domain.fleet import VehicleStatus
from app.errors import NotFoundError

UPDATABLE_FIELDS = (
    "reg",
    "make",
    "model",
    "mot_due_date",
    "tax_due_date",
    "warranty_end_date",
    "insurance_expiry_date",
)


def get_vehicle_by_id(db: Session, vehicle_id: int) -> VehicleModel | None:
    """Get a vehicle by ID."""
    return db.query(VehicleModel).filter(VehicleModel.id == vehicle_id).first()


def get_vehicle_by_reg(
    db: Session, reg: str, exclude_id: int | None = None
) -> VehicleModel | None:
    """Get a vehicle by registration. Used to check for duplicates."""
    query = db.query(VehicleModel).filter(VehicleModel.reg == reg)
    if exclude_id is not None:
        query = query.filter(VehicleModel.id != exclude_id)
    return query.first()


def get_all_vehicles_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    status: str | None = None,
) -> tuple[list[VehicleModel], int]:
    """Get vehicles with pagination, optionally filtered by status."""
    query = db.query(VehicleModel)
    if status is not None:
        query = query.filter(VehicleModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    vehicles = query.order_by(VehicleModel.reg).offset(skip).limit(page_size).all()
    return vehicles, total


def get_vehicles_with_document_dates(db: Session) -> list[VehicleModel]:
    """Get vehicles that have at least one document expiry date set."""
    return (
        db.query(VehicleModel)
        .filter(
            or_(
                VehicleModel.mot_due_date.isnot(None),
                VehicleModel.tax_due_date.isnot(None),
                VehicleModel.warranty_end_date.isnot(None),
                VehicleModel.insurance_expiry_date.isnot(None),
            )
        )
        .order_by(VehicleModel.id)
        .all()
    )


def create_vehicle(db: Session, reg: str, **fields) -> VehicleModel:
    """Create a new vehicle in the database. Pure data access - no business logic."""
    db_vehicle = VehicleModel(reg=reg, status=VehicleStatus.AVAILABLE.value)
    for field in UPDATABLE_FIELDS:
        if field in fields:
            setattr(db_vehicle, field, fields[field])
    db.add(db_vehicle)
    db.commit()
    db.refresh(db_vehicle)
    return db_vehicle


def update_vehicle(db: Session, vehicle_id: int, **kwargs) -> VehicleModel:
    """
    Update a vehicle. Only updates fields that are explicitly provided.

    To clear a field (set to None), explicitly pass it with None value.
    """
    vehicle = get_vehicle_by_id(db, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle not found")

    for field in UPDATABLE_FIELDS:
        if field in kwargs:
            setattr(vehicle, field, kwargs[field])

    db.commit()
    db.refresh(vehicle)
    return vehicle


def set_vehicle_status(db: Session, vehicle_id: int, status: str) -> None:
    """Set a vehicle's status. Flushes only; the caller owns the transaction."""
    db.query(VehicleModel).filter(VehicleModel.id == vehicle_id).update(
        {VehicleModel.status: status}, synchronize_session="fetch"
    )
    db.flush()


def delete_vehicle(db: Session, vehicle_id: int) -> None:
    """Delete a vehicle from the database. Pure data access - no business logic."""
    vehicle = get_vehicle_by_id(db, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle not found")

    db.delete(vehicle)
    db.commit()
