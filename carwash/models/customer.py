"""
Customer and vehicle models for database.
"""
from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from carwash.core.dates import utcnow
from carwash.database import Base


class Customer(Base):
    """Customer database model."""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, unique=True, nullable=True, index=True)
    phone = Column(String, nullable=False, index=True)
    date_of_birth = Column(Date, nullable=True)
    is_registered = Column(Boolean, default=True, nullable=False)
    total_visits = Column(Integer, default=0, nullable=False)
    total_spent = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    # Relationships
    vehicles = relationship(
        "Vehicle", back_populates="customer", cascade="all, delete-orphan",
        lazy="selectin", order_by="Vehicle.id",
    )


class Vehicle(Base):
    """Vehicle database model."""

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    license_plate = Column(String, unique=True, nullable=False, index=True)
    vehicle_type = Column(String, nullable=False)
    make = Column(String, nullable=True)
    model = Column(String, nullable=True)
    color = Column(String, nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="vehicles")
