from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class Vehicle(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reg: str
    make: str | None = None
    model: str | None = None
    status: str
    mot_due_date: date | None = None
    tax_due_date: date | None = None
    warranty_end_date: date | None = None
    insurance_expiry_date: date | None = None


class VehicleCreate(BaseModel):
    reg: str = Field(..., min_length=1, max_length=20)
    make: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    mot_due_date: date | None = None
    tax_due_date: date | None = None
    warranty_end_date: date | None = None
    insurance_expiry_date: date | None = None


class VehicleUpdate(BaseModel):
    reg: str | None = Field(None, min_length=1, max_length=20)
    make: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    mot_due_date: date | None = None
    tax_due_date: date | None = None
    warranty_end_date: date | None = None
    insurance_expiry_date: date | None = None
