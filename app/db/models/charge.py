from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Charge(Base):
    __tablename__ = "charges"
    __table_args__ = (
        UniqueConstraint("rental_id", "due_date", name="uq_charges_rental_due_date"),
        CheckConstraint("amount >= 0", name="ck_charges_amount_non_negative"),
        CheckConstraint(
            "amount_outstanding >= 0 AND amount_outstanding <= amount",
            name="ck_charges_outstanding_within_amount",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    rental_id = Column(
        Integer, ForeignKey("rentals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    amount_outstanding = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    rental = relationship("Rental", backref="charges")
