from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.db.models.user import User as UserModel
from app.schemas.pagination import PaginatedResponse
from app.schemas.vehicle import Vehicle, VehicleCreate, VehicleUpdate
from app.services import vehicle as vehicle_service

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post("", response_model=Vehicle, status_code=status.HTTP_201_CREATED)
def create_vehicle(
    vehicle_data: VehicleCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Create a new vehicle. The registration must be unique."""
    vehicle = vehicle_service.create_vehicle(db, **vehicle_data.model_dump())
    return Vehicle.model_validate(vehicle)


@router.get("", response_model=PaginatedResponse[Vehicle])
def get_all_vehicles(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    status: str | None = Query(None, description="Filter by status (Available, Rented)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    vehicles, total = vehicle_service.get_all_vehicles(
        db, page=page, page_size=page_size, status=status
    )
    return PaginatedResponse(
        items=[Vehicle.model_validate(v) for v in vehicles],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{vehicle_id}", response_model=Vehicle)
def get_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    vehicle = vehicle_service.get_vehicle(db, vehicle_id)
    return Vehicle.model_validate(vehicle)


@router.put("/{vehicle_id}", response_model=Vehicle)
def update_vehicle(
    vehicle_id: int,
    vehicle_data: VehicleUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Update a vehicle. Only fields present in the request body are changed.

    To clear a document date, send it explicitly as null.
    """
    vehicle = vehicle_service.update_vehicle(
        db, vehicle_id, **vehicle_data.model_dump(exclude_unset=True)
    )
    return Vehicle.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Delete a vehicle. A vehicle can only be deleted if it was never rented."""
    vehicle_service.delete_vehicle(db, vehicle_id)
