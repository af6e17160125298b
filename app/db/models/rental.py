from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.db.base import Base


class Rental(Base):
    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    cadence = Column(String(10), nullable=False)
    periodic_amount = Column(Integer, nullable=False)
    status = Column(String(10), nullable=False)
    closed_at = Column(Date, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    customer = relationship("Customer", backref="rentals")
    vehicle = relationship("Vehicle", backref="rentals")
