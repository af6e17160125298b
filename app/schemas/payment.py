from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class Allocation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payment_id: int
    charge_id: int
    amount: int


class Payment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    rental_id: int | None = None
    vehicle_id: int | None = None
    amount: int
    payment_date: date
    payment_type: str
    method: str | None = None
    is_processed: bool
    processed_at: datetime | None = None
    processing_error: str | None = None


class PaymentCreate(BaseModel):
    customer_id: int
    rental_id: int | None = None
    vehicle_id: int | None = None
    amount: int = Field(..., description="Amount in pence")
    payment_date: date | None = Field(None, description="Defaults to today")
    payment_type: str = "Rental"
    method: str | None = Field(None, max_length=50)


class PaymentApplication(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment: Payment
    allocations: list[Allocation]
    unallocated: int
    already_processed: bool = False
    no_outstanding_charges: bool = False
