from sqlalchemy import Column, Date, Integer, String

from app.db.base import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    reg = Column(String(20), unique=True, nullable=False, index=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="Available")
    mot_due_date = Column(Date, nullable=True)
    tax_due_date = Column(Date, nullable=True)
    warranty_end_date = Column(Date, nullable=True)
    insurance_expiry_date = Column(Date, nullable=True)
