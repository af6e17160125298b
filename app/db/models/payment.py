from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    rental_id = Column(
        Integer, ForeignKey("rentals.id", ondelete="CASCADE"), nullable=True, index=True
    )
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    amount = Column(Integer, nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_type = Column(String(20), nullable=False)
    method = Column(String(50), nullable=True)
    is_processed = Column(Boolean, nullable=False, default=False)
    processed_at = Column(DateTime, nullable=True)
    processing_error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    customer = relationship("Customer", backref="payments")
    rental = relationship("Rental", backref="payments")
