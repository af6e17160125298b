from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.customer import Customer
from app.schemas.vehicle import Vehicle


class Rental(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    vehicle_id: int
    start_date: date
    end_date: date | None = None
    cadence: str
    periodic_amount: int
    status: str
    closed_at: date | None = None
    customer: Customer | None = None
    vehicle: Vehicle | None = None


class RentalCreate(BaseModel):
    customer_id: int
    vehicle_id: int
    start_date: date
    end_date: date | None = None
    cadence: str = Field(..., description="Daily, Weekly or Monthly")
    periodic_amount: int = Field(..., description="Amount per period in pence")
    initial_fee: int | None = Field(None, description="Initial fee in pence, paid at booking")
