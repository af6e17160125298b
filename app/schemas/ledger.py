from pydantic import BaseModel, ConfigDict


class LedgerTotals(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_charges: int
    total_payments: int
    outstanding: int


class CustomerNetPosition(LedgerTotals):
    unallocated_credit: int
