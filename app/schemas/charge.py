from datetime import date

from pydantic import BaseModel, ConfigDict


class Charge(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rental_id: int
    due_date: date
    amount: int
    amount_outstanding: int
    status: str


class RolloverResult(BaseModel):
    as_of: date
    created: list[Charge]
