from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'void')", name="ck_invoices_status"
        ),
        CheckConstraint("subtotal >= 0", name="ck_invoices_subtotal_non_negative"),
        CheckConstraint("tax_amount >= 0", name="ck_invoices_tax_amount_non_negative"),
        CheckConstraint(
            "total_amount = subtotal + tax_amount", name="ck_invoices_total_matches"
        ),
        CheckConstraint("due_date >= issue_date", name="ck_invoices_due_after_issue"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(20), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    rental_id = Column(
        Integer, ForeignKey("rentals.id", ondelete="SET NULL"), nullable=True, index=True
    )
    vehicle_id = Column(
        Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True
    )
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)

    # Billed-to and vehicle details as they were when the invoice was raised
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(320), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    vehicle_reg = Column(String(20), nullable=True)
    vehicle_make = Column(String(100), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    rental_start_date = Column(Date, nullable=True)
    rental_end_date = Column(Date, nullable=True)

    line_items = Column(JSON, nullable=False)
    subtotal = Column(Integer, nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    tax_amount = Column(Integer, nullable=False)
    total_amount = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="draft", index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    customer = relationship("Customer", backref="invoices")
