from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class InvoiceLineItem(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: int = Field(1, gt=0)
    unit_price: int = Field(..., ge=0, description="Unit price in pence")


class InvoiceLine(InvoiceLineItem):
    amount: int


class Invoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    customer_id: int
    rental_id: int | None = None
    vehicle_id: int | None = None
    issue_date: date
    due_date: date
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    vehicle_reg: str | None = None
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    rental_start_date: date | None = None
    rental_end_date: date | None = None
    line_items: list[InvoiceLine]
    subtotal: int
    tax_rate: Decimal
    tax_amount: int
    total_amount: int
    status: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class InvoiceCreate(BaseModel):
    customer_id: int
    rental_id: int | None = None
    vehicle_id: int | None = None
    issue_date: date | None = Field(None, description="Defaults to today")
    due_date: date | None = Field(None, description="Defaults to 30 days after issue")
    line_items: list[InvoiceLineItem] = Field(..., min_length=1)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    notes: str | None = None


class InvoiceFromRental(BaseModel):
    rental_id: int
    issue_date: date | None = Field(None, description="Defaults to today")
    due_date: date | None = None
    periods: int = Field(1, gt=0, description="Number of billing periods to invoice")
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    notes: str | None = None


class InvoiceUpdate(BaseModel):
    issue_date: date | None = None
    due_date: date | None = None
    line_items: list[InvoiceLineItem] | None = Field(None, min_length=1)
    tax_rate: Decimal | None = Field(None, ge=0, le=100, decimal_places=2)
    notes: str | None = None


class InvoiceStatusUpdate(BaseModel):
    status: str
