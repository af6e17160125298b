from sqlalchemy import Column, DateTime, Integer, String, func

from app.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    customer_type = Column(String(20), nullable=False, default="Individual")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
