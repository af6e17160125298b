"""Invoice numbering, totals and status rules.

Invoices are documents issued to customers; they snapshot who was billed for
what and do not take part in charge allocation. Amounts are integer pence and
the tax rate is a percentage with up to two decimals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from app.errors import DomainValidationError

INVOICE_NUMBER_PREFIX = "INV"
INVOICE_SEQUENCE_WIDTH = 4
PAYMENT_TERMS_DAYS = 30


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    VOID = "void"


ALLOWED_STATUS_CHANGES: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.VOID}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.VOID}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.VOID: frozenset(),
}

# Statuses in which an invoice may still be deleted
DELETABLE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.VOID)


@dataclass(frozen=True, slots=True)
class LineItem:
    description: str
    quantity: int
    unit_price: int

    @property
    def amount(self) -> int:
        return self.quantity * self.unit_price

    def as_dict(self) -> dict:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "amount": self.amount,
        }


@dataclass(frozen=True, slots=True)
class InvoiceTotals:
    subtotal: int
    tax_amount: int
    total: int


def invoice_number_prefix(issue_date: date) -> str:
    return f"{INVOICE_NUMBER_PREFIX}-{issue_date:%Y%m}-"


def next_invoice_number(issue_date: date, last_number: str | None) -> str:
    """
    Next number in the issue month's sequence, e.g. INV-202406-0001.

    ``last_number`` is the highest number already issued that month, or None.
    """
    prefix = invoice_number_prefix(issue_date)
    sequence = 1
    if last_number is not None:
        if not last_number.startswith(prefix):
            raise ValueError(f"{last_number} is not in the {prefix} sequence")
        sequence = int(last_number[len(prefix):]) + 1
    return f"{prefix}{sequence:0{INVOICE_SEQUENCE_WIDTH}d}"


def build_line_items(items) -> list[LineItem]:
    """Validate raw line items (mappings or objects with description/quantity/unit_price)."""
    line_items = []
    for item in items:
        if isinstance(item, LineItem):
            line_items.append(item)
            continue
        get = item.get if isinstance(item, dict) else lambda key: getattr(item, key)
        line_items.append(
            LineItem(
                description=get("description"),
                quantity=get("quantity"),
                unit_price=get("unit_price"),
            )
        )

    if not line_items:
        raise DomainValidationError("An invoice needs at least one line item")
    for item in line_items:
        if not item.description or not item.description.strip():
            raise DomainValidationError("Line item description cannot be empty")
        if item.quantity <= 0:
            raise DomainValidationError("Line item quantity must be greater than 0")
        if item.unit_price < 0:
            raise DomainValidationError("Line item unit price cannot be negative")
    return line_items


def compute_totals(line_items: list[LineItem], tax_rate: Decimal) -> InvoiceTotals:
    """Subtotal of the line amounts, tax rounded half-up to the penny, and total."""
    tax_rate = Decimal(tax_rate)
    if tax_rate < 0 or tax_rate > 100:
        raise DomainValidationError("Tax rate must be between 0 and 100")

    subtotal = sum(item.amount for item in line_items)
    tax_amount = int(
        (Decimal(subtotal) * tax_rate / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    return InvoiceTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def check_status_change(current: str, new: str) -> InvoiceStatus:
    """Return the new status if the move from ``current`` is allowed."""
    try:
        target = InvoiceStatus(new)
    except ValueError:
        raise DomainValidationError(
            f"Unknown invoice status '{new}'. Expected one of: "
            + ", ".join(s.value for s in InvoiceStatus)
        ) from None

    source = InvoiceStatus(current)
    if target not in ALLOWED_STATUS_CHANGES[source]:
        raise DomainValidationError(
            f"Invoice cannot move from {source.value} to {target.value}"
        )
    return target
